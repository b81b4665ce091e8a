"""TUI package for the git-spice stack view."""

from textual.message import Message


def field_message(name: str, field: str, doc: str) -> type[Message]:
    """Create a Message subclass carrying a single string field.

    Args:
        name: Class name (e.g. "OpenCommit"); Textual derives the handler
            name from it (``on_open_commit``).
        field: Attribute name on the message instance (e.g. "sha").
        doc: Docstring for the generated class.
    """

    def __init__(self, value: str) -> None:
        setattr(self, field, value)
        Message.__init__(self)

    def __repr__(self) -> str:
        return f"{name}({field}={getattr(self, field)!r})"

    return type(name, (Message,), {"__init__": __init__, "__repr__": __repr__, "__doc__": doc})
