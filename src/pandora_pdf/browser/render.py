"""Standalone HTML used to print a captured reader page."""

from html import escape

# Reads #selectableArea plus every accessible stylesheet from the reader page
EXTRACT_SCRIPT = """
() => {
  const element = document.querySelector("#selectableArea");
  if (!element) return null;

  let styles = "";
  for (const sheet of Array.from(document.styleSheets)) {
    try {
      for (const rule of Array.from(sheet.cssRules || [])) {
        styles += rule.cssText + "\\n";
      }
    } catch (e) {
      // cross-origin stylesheet
    }
  }
  for (const style of Array.from(document.querySelectorAll("style"))) {
    styles += style.textContent + "\\n";
  }

  const props = [
    "font-family", "font-size", "font-weight", "font-style", "line-height",
    "color", "text-align", "text-decoration", "margin", "padding",
    "background-color", "background", "border", "border-radius",
    "width", "max-width", "min-width", "height", "max-height", "min-height",
    "display", "position", "top", "right", "bottom", "left", "z-index",
    "overflow", "text-indent", "letter-spacing", "word-spacing",
  ];
  const computed = window.getComputedStyle(element);
  let rule = "#selectableArea {\\n";
  for (const prop of props) {
    const value = computed.getPropertyValue(prop);
    if (value && value !== "initial" && value !== "normal" && value !== "auto") {
      rule += `  ${prop}: ${value} !important;\\n`;
    }
  }
  rule += "}\\n";

  return {
    html: element.outerHTML,
    styles: styles,
    computedStyles: rule,
    title: document.title || "Pandora Campus Page",
  };
}
"""

# Reads the table of contents from the open reader
TOC_SCRIPT = """
() => Array.from(document.querySelectorAll("[data-docbookid]")).map((el, index) => {
  const label = el.querySelector(".Label");
  const title = el.querySelector(".Title");
  let text = "";
  if (label && title) {
    text = `${label.textContent.trim()} ${title.textContent.trim()}`;
  } else if (title) {
    text = title.textContent.trim();
  } else {
    text = (el.textContent || "").trim() || `Chapter ${index + 1}`;
  }
  return { docbookId: el.getAttribute("data-docbookid"), title: text, pageNum: index + 1 };
})
"""

PAGE_CSS = """
* { box-sizing: border-box; margin: 0; padding: 0; }
html, body {
  margin: 0; padding: 0; background: white;
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif;
}
body { padding: 20px; line-height: 1.6; color: #333; }
"""

CONTENT_CSS = """
#selectableArea {
  display: block !important; visibility: visible !important; opacity: 1 !important;
  position: relative !important; clear: both !important; overflow: visible !important;
}
#selectableArea p, #selectableArea div, #selectableArea span {
  position: relative !important; float: none !important;
  clear: both !important; display: block !important;
}
#selectableArea span { display: inline !important; }

/* overlays, cookie banners */
[class*="overlay"], [class*="modal"], [class*="popup"],
[id*="overlay"], [id*="modal"], [id*="popup"],
[class*="cookie"], [id*="cookie"] { display: none !important; }

/* post-it notes and glosses */
.mask, .glossa, [class*="mask"], [class*="glossa"],
[id*="mask-"], [id*="complement-"] { display: none !important; visibility: hidden !important; }

* {
  -webkit-print-color-adjust: exact !important;
  color-adjust: exact !important;
  print-color-adjust: exact !important;
}
@media print {
  body { margin: 0; padding: 10px; }
}
"""


def build_page_html(extracted: dict) -> str:
    """Wrap an extracted #selectableArea in a printable document."""
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="UTF-8">
    <title>{escape(extracted.get("title") or "")}</title>
    <style>
{PAGE_CSS}
{extracted.get("styles", "")}
{extracted.get("computedStyles", "")}
{CONTENT_CSS}
    </style>
  </head>
  <body>
    {extracted["html"]}
  </body>
</html>
"""
