"""Registry health report returned by ``MetaDataRegistry.validate_consistency``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RegistryHealthReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        if message and message.strip():
            self.errors.append(message)

    def add_warning(self, message: str) -> None:
        if message and message.strip():
            self.warnings.append(message)

    def add_recommendation(self, message: str) -> None:
        if message and message.strip():
            self.recommendations.append(message)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    @property
    def is_structurally_sound(self) -> bool:
        return not self.errors

    @property
    def follows_best_practices(self) -> bool:
        return not self.warnings and not self.recommendations

    @property
    def missing_bases(self) -> list[str]:
        return list(self.metadata.get("types_without_base", []))

    def to_dict(self) -> dict[str, Any]:
        return {
            "sound": self.is_structurally_sound,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
            "metadata": dict(self.metadata),
        }

    def generate_summary(self) -> str:
        lines = ["=== REGISTRY HEALTH REPORT ==="]
        if self.is_structurally_sound and self.follows_best_practices:
            lines.append("EXCELLENT: registry is structurally sound and follows all best practices")
        elif self.is_structurally_sound:
            lines.append("GOOD: registry is structurally sound but has some recommendations")
        else:
            lines.append("POOR: registry has structural issues that need attention")
        lines.append(
            f"Statistics: {len(self.errors)} errors, {len(self.warnings)} warnings, "
            f"{len(self.recommendations)} recommendations"
        )
        for title, items in (
            ("Errors", self.errors),
            ("Warnings", self.warnings),
            ("Recommendations", self.recommendations),
        ):
            if items:
                lines.append(f"{title}:")
                lines.extend(f"  - {item}" for item in items)
        if self.metadata:
            lines.append("Registry metadata:")
            for key in sorted(self.metadata):
                value = self.metadata[key]
                if isinstance(value, (list, tuple, set, frozenset, dict)) and len(value) > 8:
                    value = f"<{len(value)} entries>"
                lines.append(f"  {key}: {value}")
        return "\n".join(lines)
