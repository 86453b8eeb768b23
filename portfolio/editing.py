"""In-place editing state.

``EditableField`` holds the draft/committed pair for one piece of text and
hands the draft to an ``on_save`` callback when the owner commits it. Which
sections are currently in edit mode lives in the Flask session so the
toggle survives across page loads.
"""
from flask import session

from .auth import current_auth

EDIT_MODE_KEY = 'edit_mode'
DEFAULT_PLACEHOLDER = 'Click to edit...'


class EditableField:

    def __init__(self, value, on_save, is_edit_mode, multiline=False,
                 placeholder=DEFAULT_PLACEHOLDER, name=None):
        self.value = value or ''
        self.on_save = on_save
        self.is_edit_mode = is_edit_mode
        self.multiline = multiline
        self.placeholder = placeholder
        self.name = name
        self.edit_value = self.value
        self.is_editing = False

    def display(self):
        return self.value or self.placeholder

    @property
    def is_placeholder(self):
        return not self.value

    def sync(self, value):
        """Pick up a new committed value from outside."""
        self.value = value or ''
        self.edit_value = self.value

    def begin(self):
        if self.is_edit_mode:
            self.is_editing = True
        return self.is_editing

    def change(self, text):
        if self.is_editing:
            self.edit_value = text

    def save(self):
        if not self.is_editing:
            return self.value
        # optimistic: the committed value moves before the callback runs
        self.value = self.edit_value
        self.is_editing = False
        if self.on_save is not None:
            self.on_save(self.edit_value)
        return self.value

    def cancel(self):
        self.edit_value = self.value
        self.is_editing = False

    def key(self, name):
        if not self.is_editing:
            return
        if name == 'Enter' and not self.multiline:
            self.save()
        elif name == 'Escape':
            self.cancel()

    def set_edit_mode(self, enabled):
        self.is_edit_mode = enabled
        if not enabled:
            self.cancel()

    def __repr__(self):
        return f'<EditableField {self.name or ""} editing={self.is_editing}>'


HERO = 'hero'
ABOUT = 'about'
EDUCATION = 'education'
SECTIONS = (HERO, ABOUT, EDUCATION)


def project_section(project_id):
    return f'project:{project_id}'


def is_known_section(section):
    if section in SECTIONS:
        return True
    prefix, _, rest = section.partition(':')
    return prefix == 'project' and rest.isdigit()


def _modes():
    return session.get(EDIT_MODE_KEY, {})


def is_edit_mode(section):
    # guests and signed-out visitors never edit, whatever the session says
    if not current_auth().is_owner:
        return False
    return bool(_modes().get(section))


def set_edit_mode(section, enabled):
    modes = dict(_modes())
    if enabled:
        modes[section] = True
    else:
        modes.pop(section, None)
    session[EDIT_MODE_KEY] = modes
    return bool(enabled)


def toggle_edit_mode(section):
    return set_edit_mode(section, not is_edit_mode(section))


def active_sections():
    if not current_auth().is_owner:
        return []
    return sorted(_modes())


def field(value, on_save=None, section=None, multiline=False,
          placeholder=DEFAULT_PLACEHOLDER, name=None):
    """Build an EditableField whose edit mode follows ``section``'s toggle."""
    return EditableField(
        value, on_save,
        is_edit_mode=is_edit_mode(section) if section else False,
        multiline=multiline, placeholder=placeholder, name=name,
    )
