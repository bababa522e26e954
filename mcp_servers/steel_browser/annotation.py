"""Page-injected element labeling.

Every visible interactive element gets a numeric ``data-label`` attribute and,
when it intersects the viewport, a bordered box with its number drawn in a
fixed overlay. Tools address elements by those numbers.
"""

from __future__ import annotations

import json

OVERLAY_ID = "__steel_label_overlay"
LABEL_FUNCTION = "__steelLabelElements"

INTERACTIVE_SELECTOR = ", ".join(
    [
        "a[href]",
        "button",
        "input:not([type=hidden])",
        "textarea",
        "select",
        "summary",
        "[role=button]",
        "[role=link]",
        "[role=checkbox]",
        "[role=tab]",
        "[role=menuitem]",
        "[onclick]",
        "[contenteditable=''], [contenteditable=true]",
        "[tabindex]:not([tabindex='-1'])",
    ]
)

_BORDER = "rgba(255, 64, 0, 0.95)"
_FILL = "rgba(255, 64, 0, 0.06)"

ANNOTATION_SCRIPT = (
    "(() => {"
    f"  if (window.{LABEL_FUNCTION}) return true;"
    f"  window.{LABEL_FUNCTION} = function () {{"
    f"    const overlayId = '{OVERLAY_ID}';"
    "    const old = document.getElementById(overlayId);"
    "    if (old) old.remove();"
    "    for (const el of document.querySelectorAll('[data-label]')) el.removeAttribute('data-label');"
    "    if (!document.body) return 0;"
    "    const vw = window.innerWidth || 0;"
    "    const vh = window.innerHeight || 0;"
    "    const visible = (el) => {"
    "      const r = el.getBoundingClientRect();"
    "      if (r.width < 1 || r.height < 1) return null;"
    "      const st = window.getComputedStyle(el);"
    "      if (!st || st.display === 'none' || st.visibility === 'hidden' || st.opacity === '0') return null;"
    "      return r;"
    "    };"
    "    const root = document.createElement('div');"
    "    root.id = overlayId;"
    "    root.style.position = 'fixed';"
    "    root.style.left = '0';"
    "    root.style.top = '0';"
    "    root.style.width = '100%';"
    "    root.style.height = '100%';"
    "    root.style.pointerEvents = 'none';"
    "    root.style.zIndex = '2147483647';"
    "    root.style.fontFamily = 'ui-monospace, SFMono-Regular, Menlo, Monaco, Consolas, monospace';"
    "    let n = 0;"
    f"    for (const el of document.querySelectorAll({json.dumps(INTERACTIVE_SELECTOR)})) {{"
    "      const r = visible(el);"
    "      if (!r) continue;"
    "      n += 1;"
    "      el.setAttribute('data-label', String(n));"
    "      if (r.bottom < 0 || r.right < 0 || r.top > vh || r.left > vw) continue;"
    "      const box = document.createElement('div');"
    "      box.style.position = 'fixed';"
    "      box.style.left = `${Math.max(0, r.left)}px`;"
    "      box.style.top = `${Math.max(0, r.top)}px`;"
    "      box.style.width = `${r.width}px`;"
    "      box.style.height = `${r.height}px`;"
    f"      box.style.border = '2px solid {_BORDER}';"
    f"      box.style.background = '{_FILL}';"
    "      box.style.boxSizing = 'border-box';"
    "      const badge = document.createElement('div');"
    "      badge.textContent = String(n);"
    "      badge.style.position = 'absolute';"
    "      badge.style.left = '-2px';"
    "      badge.style.top = r.top > 16 ? '-16px' : '0';"
    "      badge.style.padding = '0 4px';"
    "      badge.style.fontSize = '11px';"
    "      badge.style.lineHeight = '14px';"
    "      badge.style.color = 'white';"
    f"      badge.style.background = '{_BORDER}';"
    "      box.appendChild(badge);"
    "      root.appendChild(box);"
    "    }"
    "    document.documentElement.appendChild(root);"
    "    return n;"
    "  };"
    "  return true;"
    "})()"
)

INVOKE_JS = f"(window.{LABEL_FUNCTION} ? window.{LABEL_FUNCTION}() : 0)"

# Registered once per page; runs the labeler in every new document after its DOM is parsed.
BOOTSTRAP_SCRIPT = (
    f"{ANNOTATION_SCRIPT};"
    "(() => {"
    f"  const run = () => {{ try {{ {INVOKE_JS}; }} catch (e) {{}} }};"
    "  if (document.readyState === 'loading') {"
    "    document.addEventListener('DOMContentLoaded', run, { once: true });"
    "  } else {"
    "    run();"
    "  }"
    "})()"
)

REMOVE_OVERLAYS_JS = (
    "(() => {"
    f"  const el = document.getElementById('{OVERLAY_ID}');"
    "  if (el) el.remove();"
    "  return true;"
    "})()"
)
