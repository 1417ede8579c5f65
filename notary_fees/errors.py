"""Error taxonomy shared by the evaluator, the registry and the record service."""

from __future__ import annotations


class FeeEngineError(Exception):
    """Base class; ``status_code`` is the HTTP-style class of the failure."""

    status_code: int = 500


class ConfigurationError(FeeEngineError, ValueError):
    """A fee type definition cannot be evaluated (e.g. unknown calculation method)."""

    status_code = 400


class NotFoundError(FeeEngineError, LookupError):
    status_code = 404

    def __init__(self, kind: str, ident: str):
        super().__init__(f"{kind} with ID {ident} not found")
        self.kind = kind
        self.ident = ident


class InactiveFeeTypeError(FeeEngineError, ValueError):
    status_code = 400

    def __init__(self, fee_type_id: str):
        super().__init__("Fee type is not active")
        self.fee_type_id = fee_type_id


__all__ = ["FeeEngineError", "ConfigurationError", "NotFoundError", "InactiveFeeTypeError"]
