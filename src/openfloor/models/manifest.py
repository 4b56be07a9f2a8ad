"""
Assistant manifests: who an agent is and what it can do.
"""

from typing import Any, Iterable, Optional

from pydantic import Field, field_validator

from openfloor.models.base import NonEmptyStr, OpenFloorModel

DEFAULT_LAYERS = ("text",)


class Identification(OpenFloorModel):
    speaker_uri: NonEmptyStr
    service_url: NonEmptyStr
    organization: NonEmptyStr
    conversational_name: NonEmptyStr
    synopsis: NonEmptyStr
    department: Optional[str] = None
    role: Optional[str] = None

    @field_validator("department", "role")
    @classmethod
    def _blank_is_absent(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class SupportedLayers(OpenFloorModel):
    input: tuple[str, ...] = DEFAULT_LAYERS
    output: tuple[str, ...] = DEFAULT_LAYERS

    @field_validator("input", "output", mode="before")
    @classmethod
    def _default_layers(cls, value: Any) -> Any:
        return DEFAULT_LAYERS if value is None else value


class Capability(OpenFloorModel):
    keyphrases: tuple[str, ...]
    descriptions: tuple[str, ...]
    languages: Optional[tuple[str, ...]] = None
    supported_layers: SupportedLayers = Field(default_factory=SupportedLayers)

    @field_validator("keyphrases", "descriptions")
    @classmethod
    def _non_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("non-empty array of strings")
        return value


class Manifest(OpenFloorModel):
    """An agent's identification plus the capabilities it advertises."""

    identification: Identification
    capabilities: tuple[Capability, ...] = ()

    @property
    def speaker_uri(self) -> str:
        return self.identification.speaker_uri

    @property
    def service_url(self) -> str:
        return self.identification.service_url


def create_basic_manifest(
    speaker_uri: str,
    service_url: str,
    name: str,
    organization: str,
    description: str,
    capabilities: Iterable[str] = (),
    department: Optional[str] = None,
    role: Optional[str] = None,
) -> Manifest:
    """Build a manifest from the handful of values most agents need.

    ``capabilities`` are keyphrases; when given they become a single
    capability described by ``description``.
    """
    keyphrases = tuple(capabilities)
    return Manifest(
        identification=Identification(
            speaker_uri=speaker_uri,
            service_url=service_url,
            organization=organization,
            conversational_name=name,
            synopsis=description,
            department=department,
            role=role,
        ),
        capabilities=(Capability(keyphrases=keyphrases, descriptions=(description,)),) if keyphrases else (),
    )
