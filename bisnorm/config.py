from __future__ import annotations

import logging.config
import os
import pathlib
from typing import Dict

import pydantic

from bisnorm.fasta_access import DEFAULT_LINE_WIDTH, FASTA_SUFFIX
from bisnorm.sam_flags import Dialect

LOG_FORMAT = "%(asctime)s:%(levelname)-4s [%(filename)s:%(lineno)d] %(message)s"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingFormatter(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(populate_by_name=True)

    file_format: str = pydantic.Field(
        alias="format"
    )  # Avoid shadowing Python `format`


class LoggingHandler(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(populate_by_name=True)

    file_class: str = pydantic.Field(
        alias="class"
    )  # Avoid shadowing Python `class`
    level: str
    formatter: str
    filename: str

    @pydantic.field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        if v not in LOG_LEVELS:
            raise ValueError(f"Invalid logging level: {v}")
        return v


class LoggingRoot(pydantic.BaseModel):
    level: str
    handlers: list[str]

    @pydantic.field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        if v not in LOG_LEVELS:
            raise ValueError(f"Invalid logging level: {v}")
        return v


class LoggingConfig(pydantic.BaseModel):
    version: int = 1
    disable_existing_loggers: bool = False
    formatters: Dict[str, LoggingFormatter]
    handlers: Dict[str, LoggingHandler]
    root: LoggingRoot

    def apply(self) -> None:
        logging.config.dictConfig(self.model_dump(by_alias=True))


class BisnormConfig(pydantic.BaseModel):
    dialect: Dialect = Dialect.GENERAL
    fasta_line_width: int = DEFAULT_LINE_WIDTH
    fasta_suffix: str = FASTA_SUFFIX
    skip_unmapped: bool = True
    logging: LoggingConfig | None = None

    @pydantic.field_validator("fasta_line_width")
    @classmethod
    def validate_line_width(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Invalid FASTA line width: {v}")
        return v


def load_config(filepath: str | os.PathLike | None) -> BisnormConfig:
    if filepath is None:
        return BisnormConfig()
    return BisnormConfig.model_validate_json(
        pathlib.Path(filepath).read_text()
    )


def configure_logging(config: BisnormConfig, log_filepath: str) -> None:
    if config.logging is not None:
        config.logging.apply()
        return
    logging.basicConfig(
        filename=log_filepath,
        filemode="w+",
        level=logging.DEBUG,
        format=LOG_FORMAT,
    )
