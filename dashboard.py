"""Investor dashboard: single page served at / that drives the JSON API."""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

dashboard_router = APIRouter()

DASHBOARD_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>FULXERPRO INVESTORS — Dashboard</title>
    <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap" rel="stylesheet">
    <script src="https://cdn.jsdelivr.net/npm/marked/marked.min.js"></script>
    <script src="https://cdn.jsdelivr.net/npm/dompurify/dist/purify.min.js"></script>
    <style>
        :root {
            --color-bg-primary: #05070d;
            --color-bg-card: #0d111c;
            --color-border: #1c2333;
            --color-primary: #007aff;
            --color-success: #34c759;
            --color-danger: #ff3b30;
            --color-text-primary: #e6e9f2;
            --color-text-muted: #7a8299;
            --font-sans: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif;
        }
        * { box-sizing: border-box; }
        body { margin: 0; background: var(--color-bg-primary); color: var(--color-text-primary); font-family: var(--font-sans); }
        header { padding: 20px 32px; border-bottom: 1px solid var(--color-border); display: flex; justify-content: space-between; }
        header h1 { margin: 0; font-size: 20px; letter-spacing: 2px; }
        main { display: grid; grid-template-columns: repeat(auto-fit, minmax(380px, 1fr)); gap: 20px; padding: 24px 32px; }
        .card { background: var(--color-bg-card); border: 1px solid var(--color-border); border-radius: 12px; padding: 20px; }
        .card h2 { margin: 0 0 12px; font-size: 15px; text-transform: uppercase; letter-spacing: 1px; color: var(--color-text-muted); }
        .region { min-height: 80px; font-size: 14px; line-height: 1.5; }
        .region.loading { color: var(--color-text-muted); font-style: italic; }
        .region.error { color: var(--color-danger); }
        button { background: var(--color-primary); color: #fff; border: 0; border-radius: 8px; padding: 8px 14px; cursor: pointer; }
        button.secondary { background: transparent; border: 1px solid var(--color-border); color: var(--color-text-primary); }
        input, select, textarea { background: #070a12; color: inherit; border: 1px solid var(--color-border); border-radius: 8px; padding: 8px; width: 100%; margin: 6px 0; }
        .bar { height: 10px; border-radius: 5px; margin: 4px 0 10px; }
        .trader { display: flex; justify-content: space-between; align-items: center; padding: 6px 0; border-bottom: 1px solid var(--color-border); }
        img, video { max-width: 100%; border-radius: 8px; }
        .chat { max-height: 320px; overflow-y: auto; }
        .msg-user { text-align: right; color: var(--color-primary); }
        .hidden { display: none; }
        table { width: 100%; font-size: 12px; border-collapse: collapse; }
        td { border-bottom: 1px solid var(--color-border); padding: 4px; vertical-align: top; }
    </style>
</head>
<body>
<header>
    <h1>FULXERPRO INVESTORS</h1>
    <span id="status">connecting...</span>
</header>
<main>
    <section class="card">
        <h2>AI-Powered Strategic Opportunities</h2>
        <div class="region" id="insights-panel"></div>
        <button id="btn-insights" onclick="App.post('/api/insights', null, this)">Refresh</button>
    </section>

    <section class="card">
        <h2>AI Asset Allocation</h2>
        <div class="region" id="asset-allocation"></div>
        <button id="btn-allocation" onclick="App.post('/api/allocation', null, this)">Regenerate</button>
    </section>

    <section class="card">
        <h2>Social Trading</h2>
        <input id="trader-search" placeholder="Search traders..." oninput="App.loadTraders()">
        <div id="trader-list"></div>
        <div class="region" id="trader-analysis"></div>
    </section>

    <section class="card">
        <h2>AI Studio</h2>
        <textarea id="studio-prompt" placeholder="Describe a visualization or video..."></textarea>
        <select id="studio-aspect"><option>1:1</option><option>16:9</option><option>9:16</option></select>
        <input type="file" id="studio-file" accept="image/*">
        <button id="btn-image" onclick="App.generateImage(this)">Generate Image</button>
        <button id="btn-video" onclick="App.generateVideo(this)">Generate Video</button>
        <button id="btn-reset" class="secondary" onclick="App.post('/api/studio/reset', null, this)">Reset</button>
        <div class="region" id="studio-output"></div>
        <div id="edit-controls" class="hidden">
            <input id="edit-prompt" placeholder="Describe your edits...">
            <button id="btn-edit" onclick="App.applyEdit(this)">Apply Edit</button>
            <div class="region" id="studio-edit"></div>
        </div>
    </section>

    <section class="card">
        <h2>AI Co-pilot</h2>
        <div class="chat" id="copilot-chat"></div>
        <input id="copilot-input" placeholder="Ask about the platform..." onkeydown="if (event.key === 'Enter') App.sendChat()">
        <button id="btn-chat-clear" class="secondary" onclick="App.clearChat()">Clear Chat</button>
    </section>

    <section class="card">
        <h2>Platform Guide</h2>
        <div class="region" id="guide-content"></div>
        <button id="btn-guide" onclick="App.post('/api/guide', null, this)">Load Guide</button>
    </section>

    <section class="card">
        <h2>Admin: Error Log</h2>
        <table id="error-log"></table>
        <button class="secondary" onclick="App.clearErrors()">Clear Log</button>
    </section>
</main>

<script>
const App = {
    ws: null,
    chat: [],
    reply: null,
    chatError: null,

    // Buttons disabled while their region is loading.
    regionButtons: {
        'insights-panel': ['btn-insights'],
        'asset-allocation': ['btn-allocation'],
        'guide-content': ['btn-guide'],
        'studio-output': ['btn-image', 'btn-video'],
        'studio-edit': ['btn-edit'],
    },

    async init() {
        const status = await (await fetch('/api/status')).json();
        document.getElementById('status').textContent = status.platform + ' v' + status.version + ' · ' + status.server;
        document.getElementById('trader-list').addEventListener('click', event => {
            const button = event.target.closest('button[data-name]');
            if (!button) return;
            if (button.dataset.action === 'follow') this.follow(button.dataset.name, button);
            else this.analyze(button.dataset.name, button);
        });
        this.connectChat();
        this.loadTraders();
        setInterval(() => this.refreshRegions(), 1500);
        setInterval(() => this.loadErrors(), 5000);
        this.refreshRegions();
        this.loadErrors();
    },

    esc(value) {
        return String(value == null ? '' : value)
            .replace(/&/g, '&amp;')
            .replace(/</g, '&lt;')
            .replace(/>/g, '&gt;')
            .replace(/"/g, '&quot;')
            .replace(/'/g, '&#39;');
    },

    md(text) {
        return DOMPurify.sanitize(marked.parse(text || ''));
    },

    async post(url, body, button) {
        if (button) button.disabled = true;
        try {
            const res = await fetch(url, {
                method: 'POST',
                headers: {'Content-Type': 'application/json'},
                body: JSON.stringify(body || {}),
            });
            if (!res.ok) {
                const err = await res.json();
                alert(err.detail || 'Request failed');
            }
            return res;
        } finally {
            if (button) button.disabled = false;
            await this.refreshRegions();
        }
    },

    async refreshRegions() {
        const res = await fetch('/api/regions');
        const data = await res.json();
        data.regions.forEach(r => this.render(r));
        const studio = await fetch('/api/studio');
        if (studio.ok) {
            const s = await studio.json();
            document.getElementById('edit-controls').classList.toggle('hidden', !s.edit_controls);
        }
    },

    render(region) {
        (this.regionButtons[region.name] || []).forEach(id => {
            document.getElementById(id).disabled = region.state === 'loading';
        });
        const el = document.getElementById(region.name);
        if (!el) return;
        el.className = el.className.replace(/ (loading|error)/g, '');
        if (region.state === 'loading') {
            el.classList.add('loading');
            el.textContent = region.message || 'Loading...';
        } else if (region.state === 'error') {
            el.classList.add('error');
            el.innerHTML = this.md(region.error);
        } else if (region.state === 'content') {
            el.innerHTML = this.renderContent(region.content);
        } else {
            el.innerHTML = '';
        }
    },

    renderContent(c) {
        if (c.allocations) {
            return c.allocations.map(a =>
                '<div>' + this.esc(a.category) + ' — ' + this.esc(a.percentage) + '%</div>' +
                '<div class="bar" style="width:' + Number(a.percentage) + '%;background:' + this.esc(a.color) + '"></div>'
            ).join('');
        }
        if (c.type === 'image') return '<img src="' + this.esc(c.src) + '" alt="' + this.esc(c.alt) + '">';
        if (c.type === 'video') return '<video controls src="' + this.esc(c.src) + '"></video>';
        if (c.status === 'applied') return 'Edit applied: ' + this.esc(c.instruction);
        let html = c.title ? '<h3>' + this.esc(c.title) + '</h3>' : '';
        html += this.md(c.markdown);
        if (c.sources && c.sources.length) {
            html += '<div>Sources: ' + c.sources.map(s =>
                '<a href="' + this.esc(s.uri) + '" target="_blank" rel="noopener">' + this.esc(s.title || s.uri) + '</a>'
            ).join(', ') + '</div>';
        }
        return html;
    },

    async loadTraders() {
        const q = document.getElementById('trader-search').value;
        const res = await fetch('/api/traders?q=' + encodeURIComponent(q));
        if (!res.ok) return;
        const data = await res.json();
        document.getElementById('trader-list').innerHTML = data.traders.map(t => {
            const name = this.esc(t.name);
            return '<div class="trader"><span>' + this.esc(t.rank) + ' ' + name + ' <b>' + this.esc(t.ytd) + '</b></span><span>' +
                '<button class="secondary" data-action="follow" data-name="' + name + '">' + (t.following ? 'Following' : 'Follow') + '</button> ' +
                '<button data-action="analyze" data-name="' + name + '">Analyze</button></span></div>';
        }).join('');
    },

    async follow(name, button) {
        await this.post('/api/traders/' + encodeURIComponent(name) + '/follow', null, button);
        this.loadTraders();
    },

    analyze(name, button) { this.post('/api/traders/' + encodeURIComponent(name) + '/analysis', null, button); },

    generateImage(button) {
        this.post('/api/studio/image', {
            prompt: document.getElementById('studio-prompt').value,
            aspect_ratio: document.getElementById('studio-aspect').value,
        }, button);
    },

    applyEdit(button) { this.post('/api/studio/edit', {prompt: document.getElementById('edit-prompt').value}, button); },

    async generateVideo(button) {
        const file = document.getElementById('studio-file').files[0];
        const body = {prompt: document.getElementById('studio-prompt').value};
        if (file) {
            body.image_data = await new Promise(resolve => {
                const reader = new FileReader();
                reader.onload = () => resolve(reader.result);
                reader.readAsDataURL(file);
            });
            body.image_mime_type = file.type;
        }
        this.post('/api/studio/video', body, button);
    },

    // ── Co-pilot ────────────────────────────────────

    connectChat() {
        const proto = location.protocol === 'https:' ? 'wss://' : 'ws://';
        this.ws = new WebSocket(proto + location.host + '/ws/copilot');
        this.ws.onmessage = event => this.onChatMessage(JSON.parse(event.data));
        this.ws.onclose = () => {
            this.chat = [];
            this.reply = null;
            this.renderChat();
            setTimeout(() => this.connectChat(), 3000);
        };
    },

    onChatMessage(msg) {
        if (msg.type === 'delta') {
            this.reply = (this.reply || '') + msg.content;
        } else if (msg.type === 'done') {
            this.chat.push({role: 'model', text: msg.content});
            this.reply = null;
        } else if (msg.type === 'error') {
            if (this.chat.length && this.chat[this.chat.length - 1].role === 'user') this.chat.pop();
            this.reply = null;
            this.chatError = msg.detail ? msg.content + ' ' + msg.detail : msg.content;
        } else if (msg.type === 'cleared') {
            this.chat = [];
            this.reply = null;
        }
        this.renderChat();
    },

    renderChat() {
        const streaming = this.reply !== null;
        document.getElementById('copilot-input').disabled = streaming;
        const messages = this.chat.concat(streaming ? [{role: 'model', text: this.reply}] : []);
        let html = messages.map(m =>
            '<div class="' + (m.role === 'user' ? 'msg-user' : '') + '">' + this.md(m.text) + '</div>'
        ).join('');
        if (this.chatError) html += '<div class="region error">' + this.esc(this.chatError) + '</div>';
        const el = document.getElementById('copilot-chat');
        el.innerHTML = html;
        el.scrollTop = el.scrollHeight;
    },

    sendChat() {
        const input = document.getElementById('copilot-input');
        if (!input.value.trim() || this.reply !== null) return;
        this.chat.push({role: 'user', text: input.value});
        this.reply = '';
        this.chatError = null;
        this.renderChat();
        this.ws.send(JSON.stringify({type: 'message', content: input.value}));
        input.value = '';
    },

    clearChat() {
        this.chatError = null;
        this.ws.send(JSON.stringify({type: 'clear'}));
    },

    async loadErrors() {
        const data = await (await fetch('/api/admin/errors')).json();
        document.getElementById('error-log').innerHTML = data.errors.map(e =>
            '<tr><td>' + this.esc(e.timestamp) + '</td><td>' + this.esc(e.context) + '</td><td>' + this.esc(e.message) + '</td></tr>'
        ).join('') || '<tr><td>No errors recorded.</td></tr>';
    },

    async clearErrors() {
        await fetch('/api/admin/errors', {method: 'DELETE'});
        this.loadErrors();
    },
};

document.addEventListener('DOMContentLoaded', () => App.init());
</script>
</body>
</html>
"""


@dashboard_router.get("/", response_class=HTMLResponse)
async def dashboard():
    return DASHBOARD_HTML
