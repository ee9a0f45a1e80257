import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, TextIO

from .tokens import Token


class ResolverInternalError(RuntimeError):
    """
    Raised for defects in the resolver itself (an unbalanced scope pop, a
    reference site recorded twice). Language errors are never raised; they
    go through a DiagnosticsSink.
    """
    pass


@dataclass(frozen=True)
class ResolveError:
    line: int
    lexeme: str
    message: str

    def __str__(self) -> str:
        return f"[line {self.line}] Error at '{self.lexeme}': {self.message}"


class DiagnosticsSink(ABC):
    """Receives every static error the resolver finds."""
    @abstractmethod
    def report_error(self, token: Token, message: str):
        raise NotImplementedError


class ErrorReporter(DiagnosticsSink):
    """
    Collects resolve errors and echoes each one to a stream (stderr by
    default). Whether any of them should stop execution is up to the caller.
    """
    def __init__(self, stream: Optional[TextIO] = None, echo: bool = True):
        self.stream = stream
        self.echo = echo
        self.errors: List[ResolveError] = []

    @property
    def had_error(self) -> bool:
        return bool(self.errors)

    def messages(self) -> List[str]:
        return [error.message for error in self.errors]

    def report_error(self, token: Token, message: str):
        error = ResolveError(token.line, token.lexeme, message)
        self.errors.append(error)
        if self.echo:
            # Looked up late so redirect_stderr in callers is honoured.
            print(error, file=self.stream or sys.stderr)

    def reset(self):
        self.errors.clear()
