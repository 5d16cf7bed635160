"""
Tolerance tiers for numerical comparison.

Defines precision expectations when the results of two backends are
compared cell by cell:
- Exact: layout moves and copies of stored values
- Backward stable: factorizations and solves of well-conditioned inputs
- Ill-conditioned: inputs with condition number above ILL_CONDITION_THRESHOLD
- Spectral: eigenvalues and singular values from different algorithms

Used by the test suite to compare the native and external backends.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerances for one tier of numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Layout conversion never rounds
EXACT = ToleranceTier(
    rtol=0.0,
    atol=0.0,
    name='exact',
    description='Bit-identical moves of stored values',
)

BACKWARD_STABLE = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='backward_stable',
    description='Factorizations and solves, well-conditioned input',
)

ILL_CONDITIONED = ToleranceTier(
    rtol=1e-4,
    atol=1e-6,
    name='ill_conditioned',
    description='Factorizations and solves, cond > 1e8',
)

# Different eigensolvers agree to a few ulps times the spectral spread
SPECTRAL = ToleranceTier(
    rtol=1e-8,
    atol=1e-10,
    name='spectral',
    description='Eigenvalues and singular values across algorithms',
)

ILL_CONDITION_THRESHOLD = 1e8


def select_tolerance(
    routine: str,
    is_ill_conditioned: bool = False,
) -> ToleranceTier:
    """Select the tolerance tier for comparing outputs of `routine`."""
    if routine in ('dlacpy', 'dlange', 'dlansy', 'dlantr'):
        return EXACT if routine == 'dlacpy' else BACKWARD_STABLE
    if is_ill_conditioned:
        return ILL_CONDITIONED
    if routine in ('dsyev', 'dsterf', 'dsteqr', 'dgesvd', 'dhseqr', 'dgeev'):
        return SPECTRAL
    return BACKWARD_STABLE


def ill_conditioned(condition_number: float) -> bool:
    """True when inputs with this condition number need the ILL_CONDITIONED tier."""
    return condition_number > ILL_CONDITION_THRESHOLD
