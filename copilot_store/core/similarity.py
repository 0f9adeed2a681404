"""
Vector similarity helpers.

Scores are cosine similarity in [-1, 1]: higher is closer and 1.0 means the
vectors point the same way. Every threshold in this package is compared with
``score > threshold`` and results rank by descending score.

Dependencies: numpy
System role: Distance function behind cache lookups and catalog search
"""

from collections.abc import Sequence

import numpy as np

from copilot_store.core.exceptions import InvalidArgumentError


def to_vector(
    values: Sequence[float] | np.ndarray,
    dimension: int | None = None,
    field: str = "vectors",
) -> np.ndarray:
    """
    Validate and convert an embedding to a float64 array.

    Args:
        values: Embedding components
        dimension: Required length, or None to accept any length
        field: Field name reported on failure

    Returns:
        np.ndarray: 1-D float64 vector with a non-zero norm

    Raises:
        InvalidArgumentError: If the vector is empty, non-numeric, not finite,
            all zeros or has the wrong length
    """
    if values is None:
        raise InvalidArgumentError("Vector is required", field=field)
    try:
        vector = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(
            "Vector must contain only numbers", field=field, details={"error": str(e)}
        ) from e

    if vector.ndim != 1 or vector.size == 0:
        raise InvalidArgumentError(
            "Vector must be a non-empty flat list of numbers",
            field=field,
            details={"shape": list(vector.shape)},
        )
    if dimension is not None and vector.size != dimension:
        raise InvalidArgumentError(
            f"Vector must have {dimension} dimensions",
            field=field,
            details={"dimension": int(vector.size)},
        )
    if not np.all(np.isfinite(vector)):
        raise InvalidArgumentError("Vector contains NaN or infinite values", field=field)
    if float(np.linalg.norm(vector)) == 0.0:
        raise InvalidArgumentError("Vector has zero magnitude", field=field)
    return vector


def cosine_similarities(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Row-wise cosine similarity of ``matrix`` against ``query``."""
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    scores = (matrix @ query) / norms
    return np.clip(scores, -1.0, 1.0)