# In-page JavaScript used by the page driver and the capture script.
# Scripts only read DOM facts or apply DOM mutations; every decision is made in Python.

SNAPSHOT_FUNCTION_SOURCE = r"""
function __domreplaySnapshot(el) {
  const path = [];
  let current = el;
  while (current && current.nodeType === Node.ELEMENT_NODE) {
    const parent = current.parentNode;
    const siblings = parent && parent.children ? Array.from(parent.children) : [current];
    const sameTag = siblings.filter((s) => s.nodeName === current.nodeName);
    path.unshift({
      tag: current.nodeName.toLowerCase(),
      id: current.id || null,
      idResolves: !!current.id && document.getElementById(current.id) === current,
      index: Math.max(sameTag.indexOf(current) + 1, 1),
      sameTagCount: Math.max(sameTag.length, 1)
    });
    current = parent;
  }

  const countAttr = (name, value) => {
    if (value === null) return 0;
    return Array.from(document.querySelectorAll('[' + name + ']'))
      .filter((n) => n.getAttribute(name) === value).length;
  };

  const classes = el.classList ? Array.from(el.classList).filter((c) => c.length > 0) : [];
  const testId = el.getAttribute('data-testid');
  const dataId = el.getAttribute('data-id');
  const text = (el.textContent || el.innerText || '').trim().substring(0, 100);

  return {
    tag: el.nodeName.toLowerCase(),
    id: el.id || null,
    idResolves: !!el.id && document.getElementById(el.id) === el,
    testId: testId,
    testIdMatches: countAttr('data-testid', testId),
    dataId: dataId,
    dataIdMatches: countAttr('data-id', dataId),
    classes: classes,
    classMatches: classes.length ? document.getElementsByClassName(classes.join(' ')).length : 0,
    text: text,
    inputType: typeof el.type === 'string' ? el.type : null,
    path: path
  };
}
"""

SNAPSHOT_ELEMENT_JS = "(el) => {" + SNAPSHOT_FUNCTION_SOURCE + " return __domreplaySnapshot(el); }"

QUERY_SELECTOR_JS = r"""
(selector) => {
  try {
    if (selector.startsWith('//')) {
      return document.evaluate(
        selector, document, null, XPathResult.FIRST_ORDERED_NODE_TYPE, null
      ).singleNodeValue;
    }
    return document.querySelector(selector);
  } catch (e) {
    return { invalidSelector: String((e && e.message) || e) };
  }
}
"""

IS_VISIBLE_JS = r"""
(el) => {
  if (!el || !el.isConnected) return false;
  const style = window.getComputedStyle(el);
  if (style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0') {
    return false;
  }
  const rect = el.getBoundingClientRect();
  if (rect.width <= 0 || rect.height <= 0) return false;
  const hit = document.elementFromPoint(rect.left + rect.width / 2, rect.top + rect.height / 2);
  return hit === el || el.contains(hit);
}
"""

DISPATCH_EVENT_JS = r"""
(el, spec) => {
  const Ctor = typeof window[spec.eventClass] === 'function' ? window[spec.eventClass] : Event;
  const init = Object.assign({}, spec.init);
  if (Ctor === UIEvent || Ctor.prototype instanceof UIEvent) init.view = window;
  return el.dispatchEvent(new Ctor(spec.type, init));
}
"""

FOCUS_JS = "(el) => { el.focus(); }"
BLUR_JS = "(el) => { el.blur(); }"
SET_VALUE_JS = "(el, value) => { el.value = value; }"
APPEND_VALUE_JS = "(el, chunk) => { el.value += chunk; }"
SET_CHECKED_JS = "(el, checked) => { el.checked = !!checked; }"
ACTIVE_ELEMENT_JS = "() => document.activeElement || document.body"
SCROLL_TO_JS = "(args) => { window.scrollTo({ left: args.x, top: args.y, behavior: args.behavior }); }"
ENVIRONMENT_JS = r"""
() => ({
  userAgent: navigator.userAgent,
  viewport: { width: window.innerWidth, height: window.innerHeight }
})
"""
