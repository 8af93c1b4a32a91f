"""
Dashboard page served at GET /

The page renders what the server pushes over /ws and posts user actions to
the REST endpoints. It keeps no state of its own beyond widget state.
"""

import html

# Plain string with __PLACEHOLDERS__: the CSS/JS below is full of { } braces
DASHBOARD_HTML = r"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>__APP_TITLE__</title>
<script src="https://cdn.jsdelivr.net/npm/chart.js@4"></script>
<style>
  body { margin: 0; font-family: system-ui, sans-serif; background: #0f172a; color: #e2e8f0; }
  header { padding: 16px 24px; background: #1e293b; display: flex; gap: 16px; align-items: center; }
  header h1 { font-size: 20px; margin: 0; flex: 1; }
  .nav-tab { background: none; border: none; color: #94a3b8; font-weight: 600; cursor: pointer; padding: 8px 12px; }
  .nav-tab.active { color: #60a5fa; border-bottom: 2px solid #60a5fa; }
  .page { display: none; padding: 24px; }
  .page.active { display: block; }
  .card { background: #1e293b; border-radius: 12px; padding: 16px; margin-bottom: 16px; }
  .row { display: flex; flex-wrap: wrap; gap: 12px; align-items: center; }
  .status-indicator { width: 12px; height: 12px; border-radius: 50%; display: inline-block; }
  .status-connected { background: #22c55e; }
  .status-connecting { background: #eab308; }
  .status-disconnected { background: #ef4444; }
  .btn { border: none; border-radius: 8px; padding: 8px 16px; font-weight: 600; cursor: pointer; color: white; }
  .btn:disabled { opacity: 0.5; cursor: default; }
  .btn-primary { background: #3b82f6; } .btn-success { background: #38a169; }
  .btn-danger { background: #e53e3e; } .btn-secondary { background: #64748b; }
  .readout { font-size: 40px; font-weight: 700; }
  .alarming { color: #ef4444; }
  input, select, textarea { background: #0f172a; color: #e2e8f0; border: 1px solid #334155; border-radius: 6px; padding: 6px 8px; }
  table { width: 100%; border-collapse: collapse; }
  th, td { padding: 8px; border-bottom: 1px solid #334155; text-align: left; }
  .hazard-low { color: #22c55e; } .hazard-medium { color: #eab308; } .hazard-high { color: #ef4444; }
  #chart-box { height: 360px; }
  #chemical-modal { display: none; position: fixed; inset: 0; background: rgba(0,0,0,0.6); }
  #chemical-modal form { background: #1e293b; max-width: 420px; margin: 80px auto; padding: 24px; border-radius: 12px; display: grid; gap: 8px; }
  .toast { position: fixed; right: 20px; padding: 12px 20px; border-radius: 8px; color: white; font-weight: 600; z-index: 10000; }
</style>
</head>
<body>
<header>
  <h1 id="app-title">__APP_TITLE__</h1>
  <button class="nav-tab active" data-page="dashboard">Dashboard</button>
  <button class="nav-tab" data-page="database">Chemical Database</button>
  <button class="nav-tab" data-page="about">About</button>
</header>

<section id="dashboard" class="page active">
  <div class="card row">
    <span id="connection-indicator" class="status-indicator status-disconnected"></span>
    <span id="connection-text">Disconnected</span>
    <input id="device-address" value="__DEVICE_ADDRESS__" size="18">
    <button id="connect-btn" class="btn btn-primary">Test Connection</button>
    <button class="btn btn-secondary" data-command="test">Ping</button>
    <button class="btn btn-secondary" data-command="start_record">Device Rec</button>
    <button class="btn btn-secondary" data-command="end_record">Device Stop</button>
    <button class="btn btn-secondary" data-command="get_record">Device Data</button>
  </div>
  <div class="card row">
    <div>Current: <span id="current-temp" class="readout">--</span></div>
    <div>Threshold: <span id="threshold-display">--</span></div>
    <input id="threshold-input" type="number" step="0.1" size="6">
    <button id="threshold-btn" class="btn btn-primary">Set Threshold</button>
  </div>
  <div class="card row">
    <button id="record-btn" class="btn btn-success">Start Recording</button>
    <button id="clear-btn" class="btn btn-secondary">Clear Chart</button>
    <button id="save-btn" class="btn btn-primary">Save Data</button>
    <button id="export-btn" class="btn btn-primary">Export CSV</button>
    <a href="/api/chart.png?scope=session" target="_blank">Session chart</a>
  </div>
  <div class="card" id="chart-box"><canvas id="temperatureChart"></canvas></div>
</section>

<section id="database" class="page">
  <div class="card row">
    <input id="search-input" placeholder="Search chemicals...">
    <button id="add-btn" class="btn btn-success">Add Chemical</button>
  </div>
  <div class="card">
    <table>
      <thead><tr><th>Name</th><th>Formula</th><th>Boiling</th><th>Freezing</th><th>Hazard</th><th>Notes</th><th></th></tr></thead>
      <tbody id="chemicals-tbody"></tbody>
    </table>
  </div>
</section>

<section id="about" class="page">
  <div class="card">
    Live thermocouple readings from the ESP32 over WebSocket (ws://&lt;device&gt;/ws),
    threshold alarm, CSV export and a chemical reference table.
  </div>
</section>

<div id="chemical-modal">
  <form id="chemical-form">
    <h3 id="modal-title">Add Chemical</h3>
    <input id="chem-name" placeholder="Name" required>
    <input id="chem-formula" placeholder="Formula" required>
    <input id="boiling-point" type="number" step="any" placeholder="Boiling point (°C)" required>
    <input id="freezing-point" type="number" step="any" placeholder="Freezing point (°C)" required>
    <select id="hazard-level"><option>Low</option><option>Medium</option><option>High</option></select>
    <textarea id="chem-notes" placeholder="Notes"></textarea>
    <div class="row">
      <button class="btn btn-success" type="submit">Save</button>
      <button class="btn btn-secondary" type="button" id="cancel-btn">Cancel</button>
    </div>
  </form>
</div>

<script>
(() => {
  const $ = (id) => document.getElementById(id);
  const TOAST_COLORS = { success: '#38a169', error: '#e53e3e', warning: '#d69e2e', info: '#4299e1' };
  let chemicals = [];
  let editing = null;
  let audioCtx = null;

  function showToast(message, level) {
    const toast = document.createElement('div');
    toast.className = 'toast';
    toast.style.top = (20 + document.querySelectorAll('.toast').length * 56) + 'px';
    toast.style.background = TOAST_COLORS[level] || TOAST_COLORS.info;
    toast.textContent = message;
    document.body.appendChild(toast);
    setTimeout(() => toast.remove(), 3000);
  }

  function playTone(frequency, duration) {
    try {
      audioCtx = audioCtx || new (window.AudioContext || window.webkitAudioContext)();
      const osc = audioCtx.createOscillator();
      const gain = audioCtx.createGain();
      osc.type = 'square';
      osc.frequency.value = frequency;
      gain.gain.value = 0.2;
      osc.connect(gain); gain.connect(audioCtx.destination);
      osc.start();
      osc.stop(audioCtx.currentTime + duration);
    } catch (err) {
      console.warn('Buzzer error:', err);
    }
  }

  const chart = new Chart($('temperatureChart').getContext('2d'), {
    type: 'line',
    data: { labels: [], datasets: [
      { label: 'Temperature (°C)', data: [], borderColor: '#60a5fa', backgroundColor: 'rgba(96,165,250,0.1)', tension: 0.4, fill: true, borderWidth: 3, pointRadius: 4 },
      { label: 'Threshold', data: [], borderColor: '#ef4444', borderDash: [8, 4], pointRadius: 0, borderWidth: 2 }
    ] },
    options: { responsive: true, maintainAspectRatio: false, animation: false,
      scales: { y: { beginAtZero: false, title: { display: true, text: 'Temperature (°C)' } },
                x: { title: { display: true, text: 'Time' } } } }
  });

  const render = {
    status(m) {
      $('connection-indicator').className = 'status-indicator ' + m.indicator;
      $('connection-text').textContent = m.text;
      $('connect-btn').textContent = m.button;
      $('connect-btn').disabled = m.disabled;
    },
    chart(m) {
      chart.data.labels = m.labels;
      chart.data.datasets[0].data = m.temperature;
      chart.data.datasets[1].data = m.threshold;
      chart.update('none');
    },
    threshold(m) { $('threshold-display').textContent = m.display; $('threshold-input').value = m.value; },
    recording(m) {
      $('record-btn').textContent = m.button;
      $('record-btn').className = 'btn ' + (m.active ? 'btn-danger' : 'btn-success');
    },
    reading(m) { $('current-temp').textContent = m.display; },
    alert(m) { $('current-temp').classList.toggle('alarming', m.state === 'alarming'); },
    toast(m) { showToast(m.message, m.level); },
    tone(m) { playTone(m.frequency, m.duration); },
    chemicals(m) { chemicals = m.records; renderChemicals(); },
    snapshot(m) {
      $('app-title').textContent = m.title;
      $('device-address').value = m.address;
      ['status', 'chart', 'threshold', 'recording', 'reading', 'alert'].forEach((k) => render[k](m[k]));
      render.chemicals({ records: m.chemicals });
    }
  };

  function connectDashboard() {
    const proto = location.protocol === 'https:' ? 'wss' : 'ws';
    const ws = new WebSocket(`${proto}://${location.host}/ws`);
    ws.onmessage = (event) => {
      const msg = JSON.parse(event.data);
      if (render[msg.type]) render[msg.type](msg);
    };
    ws.onclose = () => setTimeout(connectDashboard, 2000);
  }

  async function post(url, body, method) {
    const resp = await fetch(url, {
      method: method || 'POST',
      headers: { 'Content-Type': 'application/json' },
      body: body === undefined ? undefined : JSON.stringify(body)
    });
    let data = {};
    try { data = await resp.json(); } catch (err) { /* empty body */ }
    if (!resp.ok) showToast(data.error || 'Request failed', data.level || 'error');
    else if (data.message) showToast(data.message, data.level || 'success');
    return resp.ok;
  }

  function renderChemicals() {
    const term = $('search-input').value.toLowerCase();
    const tbody = $('chemicals-tbody');
    tbody.innerHTML = '';
    if (!chemicals.length) {
      tbody.innerHTML = '<tr><td colspan="7">No chemicals added yet. Click "Add Chemical" to get started.</td></tr>';
      return;
    }
    chemicals.forEach((c) => {
      const row = document.createElement('tr');
      const cells = [c.chemName, c.formula, c.boilingPoint + '°C', c.freezingPoint + '°C', c.hazardLevel, c.notes || '-'];
      cells.forEach((text, i) => {
        const td = document.createElement('td');
        td.textContent = text;
        if (i === 4) td.className = 'hazard-' + String(text).toLowerCase();
        row.appendChild(td);
      });
      const actions = document.createElement('td');
      const edit = document.createElement('button');
      edit.className = 'btn btn-primary'; edit.textContent = 'Edit';
      edit.onclick = () => openModal(c);
      const del = document.createElement('button');
      del.className = 'btn btn-danger'; del.textContent = 'Delete';
      del.onclick = () => {
        if (del.dataset.armed) { post(`/api/chemicals/${c.backendId}`, undefined, 'DELETE'); return; }
        del.dataset.armed = '1'; del.textContent = 'Confirm Delete?';
        setTimeout(() => { delete del.dataset.armed; del.textContent = 'Delete'; }, 5000);
      };
      actions.append(edit, del);
      row.appendChild(actions);
      row.style.display = row.textContent.toLowerCase().includes(term) ? '' : 'none';
      tbody.appendChild(row);
    });
  }

  function openModal(chemical) {
    editing = chemical || null;
    $('modal-title').textContent = editing ? 'Edit Chemical' : 'Add Chemical';
    $('chemical-form').reset();
    if (editing) {
      $('chem-name').value = editing.chemName;
      $('chem-formula').value = editing.formula;
      $('boiling-point').value = editing.boilingPoint;
      $('freezing-point').value = editing.freezingPoint;
      $('hazard-level').value = editing.hazardLevel;
      $('chem-notes').value = editing.notes || '';
    }
    $('chemical-modal').style.display = 'block';
  }

  function closeModal() { $('chemical-modal').style.display = 'none'; editing = null; }

  document.querySelectorAll('.nav-tab').forEach((tab) => tab.onclick = () => {
    document.querySelectorAll('.nav-tab, .page').forEach((el) => el.classList.remove('active'));
    tab.classList.add('active');
    $(tab.dataset.page).classList.add('active');
  });
  document.querySelectorAll('[data-command]').forEach((btn) => btn.onclick = () =>
    post('/api/device/command', { command: btn.dataset.command }));

  $('connect-btn').onclick = () => post('/api/connection/toggle', { address: $('device-address').value });
  $('threshold-btn').onclick = () => post('/api/threshold', { value: $('threshold-input').value });
  $('record-btn').onclick = () => post('/api/recording/toggle');
  $('clear-btn').onclick = () => post('/api/recording/clear');
  $('save-btn').onclick = () => post('/api/recording/save');
  $('export-btn').onclick = async () => {
    const resp = await fetch('/api/export.csv');
    if (!resp.ok) { const data = await resp.json(); showToast(data.error, data.level || 'warning'); return; }
    const disposition = resp.headers.get('Content-Disposition') || '';
    const match = disposition.match(/filename=([^;]+)/);
    const url = URL.createObjectURL(await resp.blob());
    const a = document.createElement('a');
    a.href = url; a.download = match ? match[1] : 'temperature_data.csv'; a.click();
    URL.revokeObjectURL(url);
    showToast('Data exported successfully', 'success');
  };
  $('search-input').oninput = renderChemicals;
  $('add-btn').onclick = () => openModal(null);
  $('cancel-btn').onclick = closeModal;
  $('chemical-modal').onclick = (event) => { if (event.target === $('chemical-modal')) closeModal(); };
  $('chemical-form').onsubmit = async (event) => {
    event.preventDefault();
    const body = {
      id: editing ? editing.id : undefined,
      chemName: $('chem-name').value,
      formula: $('chem-formula').value,
      boilingPoint: parseFloat($('boiling-point').value),
      freezingPoint: parseFloat($('freezing-point').value),
      hazardLevel: $('hazard-level').value,
      notes: $('chem-notes').value
    };
    const ok = editing
      ? await post(`/api/chemicals/${editing.backendId}`, body, 'PUT')
      : await post('/api/chemicals', body);
    if (ok) closeModal();
  };

  connectDashboard();
})();
</script>
</body>
</html>
"""


def render_dashboard(title: str, device_address: str) -> str:
    return (
        DASHBOARD_HTML
        .replace("__APP_TITLE__", html.escape(title))
        .replace("__DEVICE_ADDRESS__", html.escape(device_address))
    )
