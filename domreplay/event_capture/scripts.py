import json

from ..page_driver.scripts import SNAPSHOT_FUNCTION_SOURCE

# Installed in the current document and, through an init script, in every
# document the page loads afterwards. Listeners run in the capture phase so
# that page handlers calling stopPropagation() cannot hide events.
_CAPTURE_SCRIPT_TEMPLATE = r"""
(function (config) {
  const registry = (window.__domreplayRecorders = window.__domreplayRecorders || {});
  if (registry[config.binding]) return;

  %(snapshot_source)s

  const report = (payload) => {
    const send = window[config.binding];
    if (typeof send !== 'function') return;
    Promise.resolve(send(payload)).catch(() => {});
  };

  const excluded = (target) =>
    !!(config.excludeSelector && target && target.closest && target.closest(config.excludeSelector));

  const base = (kind) => ({
    kind: kind,
    url: window.location.href,
    scrollX: window.scrollX,
    scrollY: window.scrollY,
    viewport: { width: window.innerWidth, height: window.innerHeight }
  });

  const withTarget = (kind, event, extra) => {
    const target = event.target;
    if (!(target instanceof Element) || excluded(target)) return;
    report(Object.assign(base(kind), { target: __domreplaySnapshot(target) }, extra ? extra(target) : {}));
  };

  const handlers = {
    click: (event) => withTarget('click', event, () => ({ clientX: event.clientX, clientY: event.clientY })),
    input: (event) => withTarget('input', event, (t) => ({ value: t.value })),
    change: (event) => withTarget('change', event, (t) => ({ value: t.value, checked: !!t.checked })),
    submit: (event) => withTarget('submit', event),
    scroll: (event) => {
      if (event.target instanceof Element && excluded(event.target)) return;
      report(base('scroll'));
    },
    keydown: (event) => {
      if (event.target instanceof Element && excluded(event.target)) return;
      report(Object.assign(base('keydown'), {
        key: event.key,
        ctrlKey: event.ctrlKey,
        metaKey: event.metaKey,
        shiftKey: event.shiftKey,
        altKey: event.altKey
      }));
    }
  };

  let lastUrl = window.location.href;
  const observer = new MutationObserver(() => {
    if (window.location.href !== lastUrl) {
      lastUrl = window.location.href;
      report({ kind: 'location', url: lastUrl });
    }
  });
  observer.observe(document, { subtree: true, childList: true });

  for (const [type, handler] of Object.entries(handlers)) {
    document.addEventListener(type, handler, true);
  }

  registry[config.binding] = () => {
    for (const [type, handler] of Object.entries(handlers)) {
      document.removeEventListener(type, handler, true);
    }
    observer.disconnect();
    delete registry[config.binding];
  };

  report({ kind: 'load', url: window.location.href });
})(%(config)s);
"""

TEARDOWN_JS = r"""
(binding) => {
  const registry = window.__domreplayRecorders;
  if (registry && registry[binding]) registry[binding]();
}
"""


def build_capture_script(binding_name: str, exclude_selector: str) -> str:
    config = json.dumps({"binding": binding_name, "excludeSelector": exclude_selector})
    return _CAPTURE_SCRIPT_TEMPLATE % {"snapshot_source": SNAPSHOT_FUNCTION_SOURCE, "config": config}
