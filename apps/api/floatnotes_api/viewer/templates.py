from __future__ import annotations

DEFAULT_SECTION = "Notes"

STYLES = """
* { box-sizing: border-box; margin: 0; padding: 0; }
:root {
    --sidebar-width: 280px;
    --bg-primary: #ffffff;
    --bg-secondary: #f5f5f7;
    --text-primary: #1d1d1f;
    --text-secondary: #6e6e73;
    --border-color: #d2d2d7;
    --accent-color: #007aff;
    --hover-color: #f0f0f5;
}
@media (prefers-color-scheme: dark) {
    :root {
        --bg-primary: #1d1d1f;
        --bg-secondary: #2c2c2e;
        --text-primary: #f5f5f7;
        --text-secondary: #98989d;
        --border-color: #3a3a3c;
        --hover-color: #3a3a3c;
    }
}
body {
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
    background: var(--bg-primary);
    color: var(--text-primary);
    line-height: 1.6;
}
.app { display: flex; height: 100vh; }
.sidebar {
    width: var(--sidebar-width);
    background: var(--bg-secondary);
    border-right: 1px solid var(--border-color);
    display: flex;
    flex-direction: column;
}
.sidebar-header { padding: 16px; border-bottom: 1px solid var(--border-color); }
.sidebar-header h1 { font-size: 18px; margin-bottom: 12px; }
#search {
    width: 100%;
    padding: 8px 12px;
    border: 1px solid var(--border-color);
    border-radius: 6px;
    background: var(--bg-primary);
    color: var(--text-primary);
}
.note-list { flex: 1; overflow-y: auto; padding: 8px; }
.section-header {
    font-size: 11px;
    font-weight: 600;
    text-transform: uppercase;
    color: var(--text-secondary);
    padding: 12px 8px 4px;
}
.note-item { padding: 8px 12px; border-radius: 6px; cursor: pointer; }
.note-item:hover { background: var(--hover-color); }
.note-item.active { background: var(--accent-color); color: #fff; }
.note-item .title { font-weight: 500; }
.note-item .preview { font-size: 12px; color: var(--text-secondary); }
.note-item.active .preview { color: rgba(255, 255, 255, 0.8); }
.content { flex: 1; overflow-y: auto; }
.note-content { max-width: 760px; margin: 0 auto; padding: 40px; }
.note-content pre { background: var(--bg-secondary); padding: 12px; border-radius: 6px; overflow-x: auto; }
.note-content img { max-width: 100%; }
.empty-state { color: var(--text-secondary); text-align: center; margin-top: 30vh; }
"""

# Shared by both pages. `loadIndex` and `loadNote` are supplied per page.
RENDER_SCRIPT = """
const DEFAULT_SECTION = %(default_section)s;
let notes = [];
let activeId = null;

function escapeHtml(text) {
    const div = document.createElement('div');
    div.textContent = text || '';
    return div.innerHTML;
}

function compareSections(a, b) {
    if (a === b) return 0;
    if (a === DEFAULT_SECTION) return 1;
    if (b === DEFAULT_SECTION) return -1;
    return a.localeCompare(b);
}

function noteItem(note) {
    const active = note.id === activeId ? ' active' : '';
    return `<div class="note-item${active}" data-id="${escapeHtml(note.id)}">` +
        `<div class="title">${escapeHtml(note.title)}</div>` +
        `<div class="preview">${escapeHtml(note.preview)}</div></div>`;
}

function renderList() {
    const query = document.getElementById('search').value.toLowerCase();
    const filtered = notes.filter(note =>
        (note.title || '').toLowerCase().includes(query) ||
        (note.preview || '').toLowerCase().includes(query)
    );

    let html = '';
    const pinned = filtered.filter(n => n.pinned);
    if (pinned.length > 0) {
        html += '<div class="section-header">Pinned</div>';
        pinned.forEach(note => { html += noteItem(note); });
    }

    const grouped = {};
    filtered.filter(n => !n.pinned).forEach(note => {
        const section = note.section || DEFAULT_SECTION;
        if (!grouped[section]) grouped[section] = [];
        grouped[section].push(note);
    });
    Object.keys(grouped).sort(compareSections).forEach(section => {
        html += `<div class="section-header">${escapeHtml(section)}</div>`;
        grouped[section].forEach(note => { html += noteItem(note); });
    });

    const list = document.getElementById('note-list');
    list.innerHTML = html;
    list.querySelectorAll('.note-item').forEach(el => {
        el.addEventListener('click', () => showNote(el.dataset.id));
    });
}

async function showNote(id) {
    activeId = id;
    renderList();
    const container = document.getElementById('note-content');
    try {
        const note = await loadNote(id);
        container.innerHTML = marked.parse(note.content || '');
        window.location.hash = id;
    } catch (err) {
        container.innerHTML = `<div class="empty-state"><p>Failed to load note: ${escapeHtml(String(err))}</p></div>`;
    }
}

async function init() {
    try {
        notes = await loadIndex();
    } catch (err) {
        document.getElementById('note-list').innerHTML =
            `<div class="empty-state"><p>Failed to load notes: ${escapeHtml(String(err))}</p></div>`;
        return;
    }
    document.getElementById('search').addEventListener('input', renderList);
    renderList();
    const fromHash = window.location.hash.slice(1);
    if (fromHash && notes.some(n => n.id === fromHash)) showNote(fromHash);
}
"""

FETCH_LOADERS = """
async function loadIndex() {
    const response = await fetch('/index.json');
    if (!response.ok) throw new Error(`index.json: ${response.status}`);
    return await response.json();
}

async function loadNote(id) {
    const response = await fetch(`/notes/${encodeURIComponent(id)}.json`);
    if (!response.ok) throw new Error(`${id}: ${response.status}`);
    return await response.json();
}
"""

EMBEDDED_LOADERS = """
const NOTES_DATA = %(notes_json)s;
const INDEX_DATA = %(index_json)s;

async function loadIndex() {
    return INDEX_DATA;
}

async function loadNote(id) {
    const note = NOTES_DATA.find(n => n.id === id);
    if (!note) throw new Error(`${id}: not found`);
    return note;
}
"""

PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>%(title)s</title>
    <style>%(styles)s</style>
</head>
<body>
    <div class="app">
        <aside class="sidebar">
            <div class="sidebar-header">
                <h1>%(title)s</h1>
                <input type="search" id="search" placeholder="Search notes...">
            </div>
            <nav id="note-list" class="note-list"></nav>
        </aside>
        <main class="content">
            <article id="note-content" class="note-content">
                <div class="empty-state"><p>Select a note from the sidebar</p></div>
            </article>
        </main>
    </div>
    <script src="https://cdn.jsdelivr.net/npm/marked/marked.min.js"></script>
    <script>
%(loaders)s
%(render)s
init();
    </script>
</body>
</html>
"""
