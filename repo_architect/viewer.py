"""
Local architecture viewer.

Collects the generated documents, plus their earlier versions from git
history, into one self-contained HTML page (markdown and mermaid rendered
client-side) and opens it in a browser.
"""

import json
import logging
import webbrowser
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from repo_architect.classifier import DEFAULT_OUTPUT_DIR
from repo_architect.render import MODULES_DIRNAME, OVERVIEW_FILENAME, arch_dir, slugify
from repo_architect.repo_monitor import get_arch_history, get_snapshot_content
from repo_architect.state import read_state

logger = logging.getLogger(__name__)

VIEWER_FILENAME = "viewer.html"

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>__TITLE__ · architecture</title>
<script src="https://cdn.jsdelivr.net/npm/marked/marked.min.js"></script>
<script src="https://cdn.jsdelivr.net/npm/mermaid@11/dist/mermaid.min.js"></script>
<style>
  body { font-family: system-ui, sans-serif; margin: 0; display: flex; }
  nav { width: 16rem; padding: 1rem; border-right: 1px solid #ddd; height: 100vh; overflow: auto; }
  nav a { display: block; padding: .25rem 0; cursor: pointer; }
  main { flex: 1; padding: 1rem 2rem; max-width: 60rem; }
  footer { color: #888; font-size: .8rem; margin-top: 2rem; }
  nav h4 { margin: 1.5rem 0 .5rem; color: #555; }
  nav a.history { font-size: .85rem; color: #555; }
  nav a.back { font-weight: bold; margin-bottom: .5rem; }
</style>
</head>
<body>
<nav id="nav"></nav>
<main><div id="doc"></div><footer id="meta"></footer></main>
<script id="viewer-data" type="application/json">__DATA__</script>
<script>
  const data = JSON.parse(document.getElementById('viewer-data').textContent);
  mermaid.initialize({ startOnLoad: false });
  function show(markdown) {
    const doc = document.getElementById('doc');
    doc.innerHTML = marked.parse(markdown || '_Nothing generated yet._');
    doc.querySelectorAll('code.language-mermaid').forEach(code => {
      const div = document.createElement('div');
      div.className = 'mermaid';
      div.textContent = code.textContent;
      code.parentElement.replaceWith(div);
    });
    mermaid.run();
  }
  const nav = document.getElementById('nav');
  const link = (label, onclick) => {
    const a = document.createElement('a');
    a.textContent = label;
    a.onclick = onclick;
    nav.appendChild(a);
    return a;
  };
  // docs is either the current tree or one history entry
  function showDocs(title, docs, footer) {
    nav.innerHTML = '';
    if (docs !== data) link('Back to current docs', showCurrent).className = 'back';
    link(title, () => show(docs.overview));
    docs.modules.forEach(m => link(m.name, () => show(m.content)));
    if (data.history.length) {
      const h = document.createElement('h4');
      h.textContent = 'History';
      nav.appendChild(h);
      data.history.forEach(entry => {
        const sha = entry.commitSha.slice(0, 7);
        const a = link(sha + ' ' + entry.summary, () => showDocs(
          'Overview at ' + sha, entry,
          'Snapshot from ' + entry.date + ', ' + entry.moduleCount + ' module(s)'));
        a.className = 'history';
        a.title = entry.date;
      });
    }
    document.getElementById('meta').textContent = footer;
    show(docs.overview);
  }
  function showCurrent() {
    showDocs(data.projectName + ' overview', data,
      data.lastRunAt ? 'Last updated ' + data.lastRunAt : 'Not generated yet');
  }
  showCurrent();
</script>
</body>
</html>
"""


def module_name_from_slug(slug: str) -> str:
    """'cli-scanner' -> 'Cli Scanner'."""
    return " ".join(word.capitalize() for word in slug.split("-") if word)


def _module_entry(stem: str, content: str) -> Dict[str, str]:
    return {"name": module_name_from_slug(stem), "slug": slugify(stem), "content": content}


def load_history(repo_root: Union[str, Path], output_dir: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Past documentation commits, newest first, each carrying the overview and
    module documents as they were at that commit so the page can show them
    without a server.
    """
    output_dir = output_dir or DEFAULT_OUTPUT_DIR
    history = []
    for snapshot in get_arch_history(repo_root, output_dir=output_dir):
        content = get_snapshot_content(repo_root, snapshot.commit_sha, output_dir=output_dir)
        history.append({
            "commitSha": snapshot.commit_sha,
            "date": snapshot.date,
            "summary": snapshot.summary,
            "moduleCount": snapshot.module_count,
            "overview": content["overview"],
            "modules": [_module_entry(m["slug"], m["content"]) for m in content["modules"]],
        })
    return history


def load_viewer_data(repo_root: Union[str, Path], output_dir: Optional[str] = None) -> Dict[str, Any]:
    """Everything the viewer page needs, read from the documentation tree."""
    repo_root = Path(repo_root)
    base = arch_dir(repo_root, output_dir)

    overview_path = base / OVERVIEW_FILENAME
    overview = overview_path.read_text(encoding="utf-8") if overview_path.exists() else ""

    modules: List[Dict[str, str]] = []
    modules_dir = base / MODULES_DIRNAME
    if modules_dir.is_dir():
        for path in sorted(modules_dir.glob("*.md")):
            modules.append(_module_entry(path.stem, path.read_text(encoding="utf-8")))

    state = read_state(repo_root, output_dir)
    try:
        history = load_history(repo_root, output_dir)
    except FileNotFoundError:
        # git is not installed
        history = []

    return {
        "projectName": repo_root.resolve().name,
        "overview": overview,
        "modules": modules,
        "lastRunAt": state.last_run_at if state else None,
        "history": history,
    }


def render_viewer_html(data: Dict[str, Any]) -> str:
    payload = json.dumps(data).replace("</", "<\\/")
    title = data["projectName"].replace("<", "&lt;").replace(">", "&gt;")
    return HTML_TEMPLATE.replace("__TITLE__", title).replace("__DATA__", payload)


def write_viewer(
    repo_root: Union[str, Path],
    output_dir: Optional[str] = None,
    open_browser: bool = True,
) -> Path:
    """Write ``viewer.html`` into the output directory and optionally open it."""
    data = load_viewer_data(repo_root, output_dir)
    path = arch_dir(repo_root, output_dir) / VIEWER_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_viewer_html(data), encoding="utf-8")
    logger.info("Wrote viewer to %s", path)

    if open_browser:
        webbrowser.open(path.resolve().as_uri())
    return path
