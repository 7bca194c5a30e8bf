"""Per-namespace registry of validators and on-change callbacks."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from .scope import PreferenceScope

Validator = Callable[[str, Any, Any, Any, "PreferenceScope"], bool]
OnChange = Callable[[str, Any, "PreferenceScope"], None]
Provider = Callable[["PreferenceScope"], Any]


@dataclass(slots=True)
class PrefRegistry:
    """Owned by one NamespaceRoot; never shared between namespaces."""

    validators: Dict[str, Validator] = field(default_factory=dict)
    validator_params: Dict[str, Any] = field(default_factory=dict)
    on_change: Dict[str, List[OnChange]] = field(default_factory=dict)

    def set_validator(self, name: str, validator: Validator, params: Any = None) -> None:
        self.validators[name] = validator
        if params is None:
            self.validator_params.pop(name, None)
        else:
            self.validator_params[name] = params

    def validator(self, name: str) -> Optional[Validator]:
        return self.validators.get(name)

    def params(self, name: str) -> Any:
        return self.validator_params.get(name)

    def has_validator(self, name: str) -> bool:
        return name in self.validators

    def add_callback(self, name: str, callback: OnChange) -> None:
        self.on_change.setdefault(name, []).append(callback)

    def callbacks(self, name: str) -> Tuple[OnChange, ...]:
        """Callbacks for ``name`` in registration order."""

        return tuple(self.on_change.get(name, ()))
