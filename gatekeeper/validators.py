"""Abstract interfaces shared by all validators."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Status(ABC):
    """The outcome of one validation pass."""

    @abstractmethod
    def detail(self) -> str:
        """Human-readable description of the outcome."""

    @abstractmethod
    def is_success(self) -> bool:
        """Whether the validation passed."""


class Validator(ABC):
    """Something that can be validated repeatedly until it succeeds."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name shown in progress messages."""

    @abstractmethod
    def validate(self) -> Status:
        """Run one validation pass; raise on a definite failure."""