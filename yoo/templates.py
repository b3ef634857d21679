"""Template catalog: what can be scaffolded and how a choice resolves."""

from __future__ import annotations

from collections.abc import Sequence

from yoo.api.registry import RegistryClient
from yoo.errors import NoTemplatesAvailable, UserCancelled
from yoo.models import TemplateDescriptor


class TemplateCatalog:
    """Reads the template list from the registration service.

    Has no side effects, so callers may retry it freely.
    """

    def __init__(self, registry: RegistryClient) -> None:
        self.registry = registry

    async def list(self) -> list[TemplateDescriptor]:
        templates = await self.registry.list_templates()
        if not templates:
            raise NoTemplatesAvailable()
        return templates


def select_template(
    templates: Sequence[TemplateDescriptor], choice: int | str
) -> TemplateDescriptor:
    """Resolve *choice* to one of *templates*.

    An ``int`` is a zero-based index into *templates*; a ``str`` is matched
    against template names, case-insensitively.

    Raises:
        NoTemplatesAvailable: If *templates* is empty.
        UserCancelled: If *choice* matches nothing.
    """
    if not templates:
        raise NoTemplatesAvailable()

    if isinstance(choice, int):
        if 0 <= choice < len(templates):
            return templates[choice]
        raise UserCancelled(f"No template at position {choice}")

    wanted = choice.strip().lower()
    for template in templates:
        if template.name.lower() == wanted:
            return template
    raise UserCancelled(f"No template named '{choice}'")
