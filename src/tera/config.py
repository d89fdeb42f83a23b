from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TeraConfig:
    significant_digits: int = 15
    uncertainty_digits: Optional[int] = None
    equality_rel_tol: float = 1e-12
    max_iterations: Optional[int] = None
    warn_inexact_exponent: bool = True


CONFIG = TeraConfig()


def set_config(
    *,
    significant_digits: Optional[int] = None,
    uncertainty_digits: Optional[int] = None,
    equality_rel_tol: Optional[float] = None,
    max_iterations: Optional[int] = None,
    warn_inexact_exponent: Optional[bool] = None,
) -> None:
    """
    Update global CONFIG flags.

    Evaluators snapshot CONFIG when they are constructed, so changes only
    affect interpreters created afterwards. Use reset_config() to go back
    to the defaults (uncertainty_digits and max_iterations can only be
    cleared that way).
    """
    global CONFIG
    if significant_digits is not None and significant_digits < 1:
        raise ValueError("significant_digits must be >= 1")
    if uncertainty_digits is not None and uncertainty_digits < 1:
        raise ValueError("Only positive integers are supported.")
    if max_iterations is not None and max_iterations < 1:
        raise ValueError("max_iterations must be >= 1")
    CONFIG = TeraConfig(
        significant_digits=CONFIG.significant_digits
        if significant_digits is None
        else significant_digits,
        uncertainty_digits=CONFIG.uncertainty_digits
        if uncertainty_digits is None
        else uncertainty_digits,
        equality_rel_tol=CONFIG.equality_rel_tol
        if equality_rel_tol is None
        else equality_rel_tol,
        max_iterations=CONFIG.max_iterations
        if max_iterations is None
        else max_iterations,
        warn_inexact_exponent=CONFIG.warn_inexact_exponent
        if warn_inexact_exponent is None
        else warn_inexact_exponent,
    )


def get_config() -> TeraConfig:
    return CONFIG


def reset_config() -> None:
    global CONFIG
    CONFIG = TeraConfig()
