"""Read-only scripts evaluated in the page to snapshot DOM facts.

None of these scripts mutate the document; they return plain JSON that the
page driver converts into domain snapshot models.
"""

COURSE_ROWS = """
(sel) => Array.from(document.querySelectorAll(sel.rows)).map((row) => {
  const text = (cell) => (cell ? cell.textContent : null);
  const action = row.querySelector(sel.action_cell);
  const button = action ? action.querySelector(sel.booking_button) : null;
  let indicator = null;
  if (action && !button) {
    if (action.querySelector(sel.waitlist_button)) indicator = "waitlist";
    else if (action.querySelector(sel.autostart_indicator)) indicator = "autostart";
    else indicator = "unknown";
  }
  const siblings = row.parentElement ? Array.from(row.parentElement.children) : [row];
  return {
    position: siblings.indexOf(row) + 1,
    row_id: row.id || null,
    day: text(row.querySelector(sel.day_cell)),
    time: text(row.querySelector(sel.time_cell)),
    has_action_cell: action !== null,
    has_booking_control: button !== null,
    booking_control_name: button ? button.getAttribute("name") : null,
    indicator: indicator,
  };
})
"""

BUTTONS = """
(selector) => Array.from(document.querySelectorAll(selector)).map((el, index) => ({
  index: index,
  text: (el.textContent || "").trim() || el.value || "",
  type: el.getAttribute("type") || (el.tagName === "BUTTON" ? "submit" : ""),
  name: el.getAttribute("name") || "",
  id: el.id || "",
  class_name: typeof el.className === "string" ? el.className : "",
}))
"""

FORMS = """
() => Array.from(document.querySelectorAll("form")).map((form, formIndex) => ({
  form_index: formIndex,
  form_id: form.id || "",
  action: form.getAttribute("action") || "",
  method: form.getAttribute("method") || "",
  fields: Array.from(form.querySelectorAll("input, select, textarea")).map((el, index) => {
    let forLabel = "";
    if (el.id) {
      const label = document.querySelector(`label[for="${CSS.escape(el.id)}"]`);
      if (label) forLabel = label.textContent || "";
    }
    let ancestorLabel = "";
    const block = el.closest("div,p,li");
    const blockLabel = block ? block.querySelector("label") : null;
    if (blockLabel && !blockLabel.getAttribute("for")) ancestorLabel = blockLabel.textContent || "";
    let siblingLabel = "";
    const prev = el.previousElementSibling;
    if (prev && ["LABEL", "SPAN", "DIV"].includes(prev.tagName)) siblingLabel = prev.textContent || "";
    return {
      index: index,
      tag: el.tagName,
      name: el.name || "",
      type: el.getAttribute("type") || (el.tagName === "INPUT" ? "text" : ""),
      value: el.value || "",
      id: el.id || "",
      class_name: typeof el.className === "string" ? el.className : "",
      required: !!el.required,
      disabled: !!el.disabled,
      read_only: !!el.readOnly,
      placeholder: el.getAttribute("placeholder") || "",
      labels: { for_label: forLabel, ancestor_label: ancestorLabel, sibling_label: siblingLabel },
      options: el.tagName === "SELECT"
        ? Array.from(el.options).map((o) => ({ value: o.value, text: o.text, selected: o.selected }))
        : [],
    };
  }),
}))
"""

CONTROL_STATE = """
(selector) => {
  const el = document.querySelector(selector);
  if (!el) return { attached: false };
  const style = window.getComputedStyle(el);
  return {
    attached: true,
    display: style.display,
    visibility: style.visibility,
    opacity: style.opacity,
    disabled: !!el.disabled,
  };
}
"""

VISIBLE_INPUTS = """
() => Array.from(document.querySelectorAll("input")).filter((el) => {
  const style = window.getComputedStyle(el);
  return style.display !== "none" && style.visibility !== "hidden" && el.offsetParent !== null;
}).map((el) => ({ type: (el.getAttribute("type") || "text").toLowerCase(), name: el.name || "", id: el.id || "" }))
"""
