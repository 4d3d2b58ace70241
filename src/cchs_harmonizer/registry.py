"""
Derivation registry.

Rule documents refer to derived-variable functions by name
(e.g. function = "bmi_fun"). Each function is written per respondent row
over TaggedValues and registered here with the @derivation decorator.

The catalogue of implementations is fixed in code; which of them a run
uses is decided entirely by the rule document.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from cchs_harmonizer.bounds import validate_inputs
from cchs_harmonizer.errors import UnknownDerivationError
from cchs_harmonizer.model import Domain
from cchs_harmonizer.tagged import NA_B, NA_D, TaggedValue, as_tagged

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Derivation:
    """
    A registered derived-variable function.

    Properties:
        name: name used in rule documents
        func: per-row function over TaggedValues
        inputs: required parameter names, in argument order
    """

    name: str
    func: Callable[..., TaggedValue]
    inputs: Tuple[str, ...]

    def __call__(self, *args: Any, **kwargs: Any) -> TaggedValue:
        """
        Evaluate one row.

        A required argument that was not passed resolves to
        Missing(VARIABLE_ABSENT) instead of a TypeError.
        """
        try:
            bound = inspect.signature(self.func).bind_partial(*args, **kwargs)
        except TypeError:
            logger.debug("%s: arguments could not be bound", self.name)
            return NA_D
        if any(name not in bound.arguments for name in self.inputs):
            return NA_D
        arguments = {k: as_tagged(v) if k in self.inputs else v for k, v in bound.arguments.items()}
        return self._evaluate(arguments)

    def _evaluate(self, arguments: Mapping[str, Any]) -> TaggedValue:
        try:
            return as_tagged(self.func(**arguments))
        except (TypeError, ValueError, ArithmeticError):
            # Folded into the tag so one bad row cannot stop a run.
            logger.debug("%s raised on a row; result tagged NA(b)", self.name, exc_info=True)
            return NA_B

    def apply(
        self,
        columns: Mapping[str, Any],
        domains: Optional[Mapping[str, Domain]] = None,
        length: Optional[int] = None,
        **options: Any,
    ) -> List[TaggedValue]:
        """
        Evaluate every row of a batch of input columns.

        Args:
            columns: input name -> scalar or vector; names not present
                were never supplied
            domains: optional pre-checks applied to inputs before the call
            length: number of rows when every input is a scalar or absent
            **options: non-input keyword arguments (e.g. bounds) passed
                unchanged to every row

        Returns:
            one TaggedValue per row
        """
        supplied = {k: v for k, v in columns.items() if k in self.inputs}
        batch = validate_inputs(supplied, self.inputs, domains, length)
        if not batch.ok:
            return batch.filled()
        return [self._evaluate({**row, **options}) for row in batch.rows()]


DERIVATIONS: Dict[str, Derivation] = {}


def _required_parameters(func: Callable) -> Tuple[str, ...]:
    return tuple(
        name
        for name, param in inspect.signature(func).parameters.items()
        if param.default is inspect.Parameter.empty
        and param.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.POSITIONAL_ONLY)
    )


def derivation(name: str) -> Callable[[Callable[..., TaggedValue]], Derivation]:
    """
    Register a per-row function under `name`.

    Example:
        @derivation("bmi_fun")
        def bmi(HWTGHTM, HWTGWTK, min_height=0.914, ...):
            ...

    Parameters without defaults are the derivation's inputs; parameters
    with defaults are options (bounds, thresholds).
    """

    def register(func: Callable[..., TaggedValue]) -> Derivation:
        if name in DERIVATIONS:
            raise ValueError(f"Derivation already registered: {name}")
        entry = Derivation(name=name, func=func, inputs=_required_parameters(func))
        DERIVATIONS[name] = entry
        return entry

    return register


def get_derivation(name: str) -> Derivation:
    """
    Look up a registered derivation.

    Raises:
        UnknownDerivationError: if nothing is registered under `name`
    """
    # Importing the catalogue registers every built-in derivation.
    import cchs_harmonizer.derived  # noqa: F401

    try:
        return DERIVATIONS[name]
    except KeyError:
        raise UnknownDerivationError(f"No derivation registered as {name!r}") from None


def registered_names() -> List[str]:
    import cchs_harmonizer.derived  # noqa: F401

    return sorted(DERIVATIONS)
