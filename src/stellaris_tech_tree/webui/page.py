"""Static HTML viewer for the exported tree.

The page is self-contained apart from the JSON files written next to it
by export_tree.write_json_files(); it renders one column per level and
filters by text, area and tier.
"""

import html

DEFAULT_TITLE = "Stellaris Technology Tree"

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{{title}}</title>
<style>
  body { background: #0d1117; color: #d0d7de; font-family: system-ui, sans-serif; margin: 1.5rem; }
  h1 { color: #6eb4ff; text-align: center; }
  #controls { display: flex; gap: 1rem; flex-wrap: wrap; margin-bottom: 1rem; }
  #tree { display: flex; gap: 1.5rem; overflow-x: auto; align-items: flex-start; }
  .column { min-width: 220px; }
  .column h3 { color: #6eb4ff; border-bottom: 1px solid #30363d; }
  .tech { background: #1c2128; border: 1px solid #30363d; border-radius: 6px; padding: .5rem; margin-bottom: .5rem; cursor: pointer; }
  .tech.selected { border-color: #e3b341; }
  .tech.prereq { border-color: #3fb950; }
  .area-physics { border-left: 3px solid #6eb4ff; }
  .area-society { border-left: 3px solid #5fca5f; }
  .area-engineering { border-left: 3px solid #ff8d3a; }
  .meta { font-size: .8rem; color: #8b949e; }
</style>
</head>
<body>
<h1>{{title}}</h1>
<div id="controls">
  <select id="language" onchange="render()"></select>
  <input id="search" placeholder="Search technologies..." onkeyup="render()">
  <select id="area" onchange="render()"><option value="">All areas</option></select>
  <select id="tier" onchange="render()"><option value="">All tiers</option></select>
  <span class="meta">Total: <span id="total">0</span> | Visible: <span id="visible">0</span></span>
</div>
<div id="tree"></div>
<script>
let metadata = null, technologies = [], localizations = {}, selected = null;

async function loadJson(name) {
  const response = await fetch(name);
  if (!response.ok) throw new Error('Failed to load ' + name);
  return response.json();
}

async function load() {
  try {
    metadata = await loadJson('metadata.json');
    const loc = await loadJson('localizations.json');
    localizations = loc.localizations;
    for (const file of metadata.technologyFiles) {
      const data = await loadJson(file);
      technologies.push(...data.technologies);
    }
    fill('language', loc.languages, l => l);
    if (loc.languages.includes('english')) document.getElementById('language').value = 'english';
    fill('area', metadata.areas, a => a);
    fill('tier', metadata.tiers, t => 'Tier ' + t);
    document.getElementById('total').textContent = technologies.length;
    render();
  } catch (err) {
    document.getElementById('tree').textContent = 'Error loading technology data: ' + err.message;
  }
}

function fill(id, values, label) {
  const select = document.getElementById(id);
  for (const value of values) {
    const option = document.createElement('option');
    option.value = value;
    option.textContent = label(value);
    select.appendChild(option);
  }
}

function localized(tech, field) {
  const lang = document.getElementById('language').value;
  const row = (localizations[tech.key] || {})[lang];
  if (row && row[field]) return row[field];
  return field === 'name' ? tech.name : '';
}

function prerequisiteClosure(key) {
  const byKey = Object.fromEntries(technologies.map(t => [t.key, t]));
  const seen = new Set(), stack = [key];
  while (stack.length) {
    const tech = byKey[stack.pop()];
    if (!tech) continue;
    for (const dep of tech.prerequisites) {
      if (!seen.has(dep)) { seen.add(dep); stack.push(dep); }
    }
  }
  return seen;
}

function render() {
  const text = document.getElementById('search').value.toLowerCase();
  const area = document.getElementById('area').value;
  const tier = document.getElementById('tier').value;
  const prereqs = selected ? prerequisiteClosure(selected) : new Set();
  const tree = document.getElementById('tree');
  tree.innerHTML = '';
  let visible = 0;
  for (let level = 0; level <= metadata.maxLevel; level++) {
    const techs = technologies.filter(t => t.level === level
      && (!area || t.area === area)
      && (!tier || String(t.tier) === tier)
      && (!text || localized(t, 'name').toLowerCase().includes(text) || t.key.includes(text)));
    if (!techs.length) continue;
    const column = document.createElement('div');
    column.className = 'column';
    column.innerHTML = '<h3>Level ' + level + '</h3>';
    for (const tech of techs) {
      const card = document.createElement('div');
      card.className = 'tech area-' + tech.area
        + (tech.key === selected ? ' selected' : '')
        + (prereqs.has(tech.key) ? ' prereq' : '');
      card.title = localized(tech, 'description');
      card.innerHTML = '<div></div><div class="meta"></div>';
      card.children[0].textContent = localized(tech, 'name');
      card.children[1].textContent = tech.area + ' | tier ' + tech.tier + ' | cost ' + tech.cost;
      card.onclick = () => { selected = selected === tech.key ? null : tech.key; render(); };
      column.appendChild(card);
      visible++;
    }
    tree.appendChild(column);
  }
  document.getElementById('visible').textContent = visible;
}

load();
</script>
</body>
</html>
"""


def render_page(title: str = DEFAULT_TITLE) -> str:
    """Return the viewer page with the given (escaped) title."""
    return _PAGE.replace("{{title}}", html.escape(title))
