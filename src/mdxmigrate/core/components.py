"""Component table: explicit name -> (kind, category, slug template) configuration"""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from mdxmigrate.core.utils.slug import camel_case, provider_key
from mdxmigrate.errors import ConfigurationError


class ComponentMapping(BaseModel):
    """How one component name resolves.

    data   registry lookup by slug (explicit, or '<provider key>-<category>')
    block  props become the fields of a typed block
    media  the file named by src_prop is uploaded and referenced
    """
    kind: Literal["data", "block", "media"] = "data"
    category: str = "data"
    provider: Optional[str] = None
    slug: Optional[str] = None
    block_type: Optional[str] = None
    src_prop: str = "src"
    required: bool = False

    def registry_slug(self) -> Optional[str]:
        if self.slug:
            return self.slug
        if self.provider:
            return f"{provider_key(self.provider)}-{self.category}"
        return None


class ComponentTable(BaseModel):
    components: dict[str, ComponentMapping] = {}
    wrappers: list[str] = ["Article", "Aside", "Figure", "Section"]

    @field_validator("components", mode="before")
    @classmethod
    def _expand_shorthand(cls, value):
        """'Name: some-slug' is a data mapping with that exact slug."""
        if not isinstance(value, dict):
            return value
        return {
            name: {"kind": "data", "slug": spec} if isinstance(spec, str) else spec
            for name, spec in value.items()
        }

    @model_validator(mode="after")
    def _check_data_targets(self):
        for name, mapping in self.components.items():
            if mapping.kind == "data" and not mapping.registry_slug():
                raise ValueError(f"data component {name!r} needs a slug or a provider")
        return self

    def lookup(self, name: str) -> Optional[ComponentMapping]:
        return self.components.get(name)

    def block_type_for(self, name: str, mapping: ComponentMapping) -> str:
        """Explicit block_type, else camelCase of the component name without a 'Block' suffix."""
        if mapping.block_type:
            return mapping.block_type
        base = name[:-len("Block")] if name.endswith("Block") and name != "Block" else name
        return camel_case(base)

    @property
    def needs_registry(self) -> bool:
        return any(m.kind == "data" for m in self.components.values())


def load_component_table(path: Path) -> ComponentTable:
    """Load a component table from YAML (either {components:, wrappers:} or a bare name mapping)."""
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read component table {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid component table {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid component table {path}: expected a mapping")
    if "components" not in data:
        data = {"components": data}
    try:
        return ComponentTable.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid component table {path}: {e}") from e


# --- production table ---

PHONE_COMPONENTS: dict[str, str] = {
    "FourChangePhoneNumber":        "4Change Energy",
    "4ChangePhoneNumber":           "4Change Energy",
    "AmigoPhoneNumber":             "Amigo Energy",
    "AmigoEnergyPhoneNumber":       "Amigo Energy",
    "CirroPhoneNumber":             "Cirro Energy",
    "CirroEnergyPhoneNumber":       "Cirro Energy",
    "ConstellationPhoneNumber":     "Constellation",
    "DirectPhoneNumber":            "Direct Energy",
    "DirectEnergyPhoneNumber":      "Direct Energy",
    "DiscountPhoneNumber":          "Discount Power",
    "DiscountPowerPhoneNumber":     "Discount Power",
    "FlagshipPhoneNumber":          "Flagship Power",
    "FlagshipPowerPhoneNumber":     "Flagship Power",
    "FrontierPhoneNumber":          "Frontier Utilities",
    "FrontierUtilitiesPhoneNumber": "Frontier Utilities",
    "FrontierPhoneNumberLinkRc":    "Frontier Utilities",
    "GexaPhoneNumber":              "Gexa Energy",
    "GexaEnergyPhoneNumber":        "Gexa Energy",
    "GreenMountainPhoneNumber":     "Green Mountain",
    "JustPhoneNumber":              "Just Energy",
    "JustEnergyPhoneNumber":        "Just Energy",
    "NewPowerPhoneNumber":          "New Power Texas",
    "NewPowerTexasPhoneNumber":     "New Power Texas",
    "PaylessPhoneNumber":           "Payless Power",
    "PaylessPowerPhoneNumber":      "Payless Power",
    "PulsePhoneNumber":             "Pulse Power",
    "PulsePowerPhoneNumber":        "Pulse Power",
    "ReliantPhoneNumber":           "Reliant",
    "RhythmPhoneNumber":            "Rhythm Energy",
    "RhythmEnergyPhoneNumber":      "Rhythm Energy",
    "TaraPhoneNumber":              "Tara Energy",
    "TaraEnergyPhoneNumber":        "Tara Energy",
    "TxuPhoneNumber":               "TXU Energy",
    "TXUPhoneNumber":               "TXU Energy",
    "TxuEnergyPhoneNumber":         "TXU Energy",
}

BLOCK_COMPONENTS = (
    "AdvisorPostsTabs", "AvgTexasResidentialRate", "ComparepowerReviewCount", "CurrentYearDirect",
    "Faq", "FaqRankMath", "HelpMeChoose", "LowestRateDisplay", "PopularCitiesList",
    "PopularZipcodes", "ProviderCard", "ProvidersPhoneTable", "RatesTable", "RatesTableBlock",
    "TocRankMath", "VcBasicGrid", "ZipcodeSearchbar",
)


def default_table() -> ComponentTable:
    components: dict[str, dict] = {
        name: {"kind": "data", "category": "phone", "provider": provider}
        for name, provider in PHONE_COMPONENTS.items()
    }
    components.update({name: {"kind": "block"} for name in BLOCK_COMPONENTS})
    components["Image"] = {"kind": "media", "category": "media", "block_type": "mediaBlock"}
    return ComponentTable.model_validate({"components": components})
