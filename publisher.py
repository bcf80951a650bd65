"""Hypothesis Digest – publishing: static site output (JSON views + HTML table)."""

import json
import logging
import os
from datetime import datetime

logger = logging.getLogger(__name__)

CLEAN_JSON = "hypotheses.json"
ALL_JSON = "hypotheses_all.json"
INDEX_HTML = "index.html"


def write_site(docs_dir, clean_records, all_records, weights):
    """Write both views and the HTML page into ``docs_dir``.

    Returns the list of paths written.  I/O errors propagate.
    """
    os.makedirs(docs_dir, exist_ok=True)
    clean = [r.to_dict() for r in clean_records]
    everything = [r.to_dict() for r in all_records]

    paths = [
        _write(os.path.join(docs_dir, CLEAN_JSON), _dump(clean, indent=2)),
        _write(os.path.join(docs_dir, ALL_JSON), _dump(everything, indent=2)),
        _write(os.path.join(docs_dir, INDEX_HTML), _build_html(clean, everything, weights)),
    ]
    logger.info("Site written to %s (%d relevant / %d total)",
                docs_dir, len(clean), len(everything))
    return paths


def _write(path, text):
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(text)
    return path


def _dump(rows, indent=None):
    return json.dumps(rows, ensure_ascii=False, indent=indent)


def _esc(text):
    return (
        str(text)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _script_json(rows):
    # "</" would end the <script> block early
    return _dump(rows).replace("</", "<\\/")


# ── HTML rendering ───────────────────────────────────────────────────────────

def _build_rows(rows):
    if not rows:
        return '<tr><td colspan="10" class="empty">No hypotheses yet.</td></tr>'
    parts = []
    for r in sorted(rows, key=lambda x: x["score"], reverse=True):
        link = (
            f'<a href="{_esc(r["link"])}" target="_blank">link</a>'
            if r["link"] else ""
        )
        parts.append(f"""
<tr data-category="{_esc(r['category'])}">
  <td>{_esc(r['date'])}</td><td>{_esc(r['section'])}</td><td>{_esc(r['source'])}</td>
  <td>{_esc(r['category'])}</td><td>{_esc(r['idea'])}</td>
  <td><span class="pill">{r['ease']}</span></td>
  <td><span class="pill">{r['potential']}</span></td>
  <td><span class="pill">{float(r['score']):.1f}</span></td>
  <td>{_esc(r['rationale'])}</td><td>{link}</td>
</tr>""")
    return "\n".join(parts)


def _build_html(clean, everything, weights):
    now = datetime.now().strftime("%B %d, %Y at %H:%M")
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width,initial-scale=1">
<title>Hypotheses – priorities</title>
<style>
body {{ font-family: system-ui,Arial,sans-serif; margin:24px; }}
table {{ border-collapse:collapse; width:100%; }}
th,td {{ border:1px solid #ddd; padding:8px; vertical-align:top; }}
th {{ cursor:pointer; background:#f7f7f7; }}
tr:nth-child(even) {{ background:#fafafa; }}
.pill {{ padding:2px 8px; border-radius:12px; background:#eee; }}
.controls {{ margin:12px 0; display:flex; gap:8px; flex-wrap:wrap; }}
button {{ padding:6px 10px; border:1px solid #ddd; background:#fff; border-radius:8px; cursor:pointer; }}
button.active {{ background:#efefef; }}
.note {{ margin:8px 0; color:#666; }}
.empty {{ text-align:center; color:#666; }}
</style>
</head>
<body>
<h1>Top hypotheses (by score)</h1>
<p class="note">Score = {weights.potential}&times;Potential + {weights.ease}&times;Ease.
Updated {now}. {len(clean)} relevant of {len(everything)} total.</p>

<div class="controls">
  <button id="viewRel" class="active">Relevant</button>
  <button id="viewAll">All</button>
  <button data-filter="all" class="active">All categories</button>
  <button data-filter="Ads">Ads</button>
  <button data-filter="Funnel">Funnel</button>
  <button data-filter="Product">Product</button>
</div>

<table id="t"><thead><tr>
<th data-k="date">Date</th><th data-k="section">Section</th><th data-k="source">Source</th>
<th data-k="category">Category</th><th data-k="idea">Hypothesis</th>
<th data-k="ease">Ease</th><th data-k="potential">Potential</th><th data-k="score">Score</th>
<th data-k="rationale">Why</th><th data-k="link">Link</th>
</tr></thead>
<tbody>
{_build_rows(clean)}
</tbody></table>

<script>window.__REL__={_script_json(clean)};window.__ALL__={_script_json(everything)};</script>
<script>
let key='score', dir=-1, filter='all', useAll=false;
function esc(s){{ return String(s==null?'':s).replace(/&/g,'&amp;').replace(/</g,'&lt;').replace(/>/g,'&gt;').replace(/"/g,'&quot;'); }}
function sortFn(a,b){{ const av=a[key], bv=b[key]; if(av===bv) return 0; return (av>bv?1:-1)*dir; }}
function render(){{
  const tb=document.querySelector('tbody'); tb.innerHTML='';
  const src=useAll?window.__ALL__:window.__REL__;
  const rows=[...src].filter(x=> filter==='all'?true:x.category===filter).sort(sortFn);
  for(const x of rows){{
    const tr=document.createElement('tr');
    tr.innerHTML=`<td>${{esc(x.date)}}</td><td>${{esc(x.section)}}</td><td>${{esc(x.source)}}</td>
<td>${{esc(x.category)}}</td><td>${{esc(x.idea)}}</td>
<td><span class="pill">${{esc(x.ease)}}</span></td>
<td><span class="pill">${{esc(x.potential)}}</span></td>
<td><span class="pill">${{Number(x.score||0).toFixed(1)}}</span></td>
<td>${{esc(x.rationale)}}</td><td>${{x.link?'<a target="_blank" href="'+esc(x.link)+'">link</a>':''}}</td>`;
    tb.appendChild(tr);
  }}
}}
function setView(all){{
  useAll=all;
  document.getElementById('viewAll').classList.toggle('active', all);
  document.getElementById('viewRel').classList.toggle('active', !all);
  render();
}}
document.querySelectorAll('th').forEach(th=> th.onclick=()=>{{ key=th.dataset.k; dir*=-1; render(); }});
document.querySelectorAll('.controls button[data-filter]').forEach(b=> b.onclick=()=>{{
  document.querySelectorAll('.controls button[data-filter]').forEach(x=>x.classList.remove('active'));
  b.classList.add('active'); filter=b.dataset.filter; render();
}});
document.getElementById('viewRel').onclick=()=>setView(false);
document.getElementById('viewAll').onclick=()=>setView(true);
if(!window.__REL__.length && window.__ALL__.length) setView(true);
</script>
</body>
</html>
"""
