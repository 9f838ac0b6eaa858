"""Catalog of common operation traits."""

from .defs import NativeOpTrait, Pred, PredOpTrait

NoSideEffect = NativeOpTrait("HasNoSideEffect")

Commutative = NativeOpTrait("IsCommutative")

Terminator = NativeOpTrait("IsTerminator")

SameOperandsAndResultType = NativeOpTrait("SameOperandsAndResultType")

# Result type is taken from the first attribute: its value for a type
# attribute, its type otherwise.
FirstAttrDerivedResultType = NativeOpTrait("FirstAttrDerivedResultType")

SameTypeOperands = NativeOpTrait("SameTypeOperands")

ResultsAreFloatLike = NativeOpTrait("ResultsAreFloatLike")


def Native(name: str) -> NativeOpTrait:
    """A trait implemented in C++ as `OpTrait::<name>`."""
    return NativeOpTrait(name)


def PredTrait(description: str, condition: str) -> PredOpTrait:
    """
    A trait checked by the generated verifier.

    Args:
        description: Completes the sentence "failed to verify that ...".
        condition: A C++ condition; `$_op` refers to the operation.
    """
    return PredOpTrait(description, Pred(condition))
