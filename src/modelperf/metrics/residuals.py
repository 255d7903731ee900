import numpy as np
from beartype import beartype
from jaxtyping import Float, jaxtyped

__all__ = ["rmse", "residual_sigma"]


@jaxtyped(typechecker=beartype)
def rmse(
    observed: Float[np.ndarray, "obs"],
    predicted: Float[np.ndarray, "obs"],
) -> float:
    """
    Root mean squared error.

    Examples:
        >>> rmse(np.array([1.0, 2.0, 3.0]), np.array([1.0, 2.0, 5.0]))
        1.1547005383792515
    """
    return float(np.sqrt(np.mean((observed - predicted) ** 2)))


@jaxtyped(typechecker=beartype)
def residual_sigma(
    residuals: Float[np.ndarray, "obs"],
    df_residual: int,
) -> float:
    """
    Residual standard deviation on ``df_residual`` degrees of freedom.

    Examples:
        >>> residual_sigma(np.array([1.0, -1.0, 1.0, -1.0]), 2)
        1.4142135623730951
    """
    if df_residual <= 0:
        raise ValueError(f"df_residual must be positive, got {df_residual}")
    return float(np.sqrt(np.sum(residuals**2) / df_residual))
