"""
JavaScript evaluated inside the page.

Every locator strategy goes through FIND_ELEMENTS so all strategies share the
same document-order and error semantics.
"""

# (root, query) -> Element[]; query = {strategy, value, first}
FIND_ELEMENTS = """
(root, query) => {
  const scope = root || document;
  const doc = scope.ownerDocument || scope;
  const all = (selector) => Array.from(scope.querySelectorAll(selector));
  const linkText = (el) => (el.innerText || el.textContent || '').trim();
  let found;
  try {
    switch (query.strategy) {
      case 'id':
        found = all('[id]').filter((el) => el.id === query.value);
        break;
      case 'class name':
        found = all('[class]').filter((el) => el.classList.contains(query.value));
        break;
      case 'css selector':
        found = all(query.value);
        break;
      case 'name':
        found = all('[name]').filter((el) => el.getAttribute('name') === query.value);
        break;
      case 'link text':
        found = all('a').filter((el) => linkText(el) === query.value);
        break;
      case 'partial link text':
        found = all('a').filter((el) => linkText(el).includes(query.value));
        break;
      case 'tag name':
        found = Array.from(scope.getElementsByTagName(query.value));
        break;
      case 'xpath': {
        const snapshot = doc.evaluate(
          query.value, scope, null, XPathResult.ORDERED_NODE_SNAPSHOT_TYPE, null
        );
        found = [];
        for (let i = 0; i < snapshot.snapshotLength; i++) {
          const node = snapshot.snapshotItem(i);
          if (node.nodeType === Node.ELEMENT_NODE) {
            found.push(node);
          }
        }
        break;
      }
      default:
        throw new Error('unsupported locator strategy: ' + query.strategy);
    }
  } catch (error) {
    if (error && error.name === 'SyntaxError') {
      throw new Error('invalid selector: ' + error.message);
    }
    throw error;
  }
  return query.first ? found.slice(0, 1) : found;
}
"""

FIND_ELEMENTS_IN_DOCUMENT = f"(query) => ({FIND_ELEMENTS})(document, query)"

IS_CONNECTED = "(el) => el.isConnected"

SAME_NODE = "(el, other) => el === other"

TAG_NAME = "(el) => el.tagName.toLowerCase()"

# WebDriver appends typed text after any existing value
MOVE_CARET_TO_END = """
(el) => {
  if (typeof el.value === 'string' && typeof el.setSelectionRange === 'function') {
    try {
      el.setSelectionRange(el.value.length, el.value.length);
    } catch (error) {
      // email/number inputs do not support selection
    }
  }
}
"""

# Returns false when there is no form to submit
SUBMIT_FORM = """
(el) => {
  const form = el.tagName === 'FORM' ? el : (el.form || el.closest('form'));
  if (!form) {
    return false;
  }
  if (typeof form.requestSubmit === 'function') {
    form.requestSubmit();
  } else {
    form.submit();
  }
  return true;
}
"""
