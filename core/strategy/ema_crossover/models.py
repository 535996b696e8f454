"""EMA Crossover strategy configuration."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

EMA_CROSSOVER_STRATEGY_NAME = "ema_crossover"

DEFAULT_SHORT_PERIOD = 10
DEFAULT_LONG_PERIOD = 30


class EmaCrossoverConfig(BaseModel):
    """Configuration for the EMA Crossover strategy.

    Accepts the request-style keys (``shortEma``/``longEma``), the
    ``shortPeriod``/``longPeriod`` spelling, and the field names.
    Dumps with ``by_alias=True`` to the request style.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    short_period: int = Field(
        default=DEFAULT_SHORT_PERIOD,
        gt=0,
        validation_alias=AliasChoices("shortEma", "shortPeriod", "short_period"),
        serialization_alias="shortEma",
    )
    long_period: int = Field(
        default=DEFAULT_LONG_PERIOD,
        gt=0,
        validation_alias=AliasChoices("longEma", "longPeriod", "long_period"),
        serialization_alias="longEma",
    )
