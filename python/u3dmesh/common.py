# Common type definitions
from pathlib import Path
from typing import Annotated, Tuple, Union

import numpy as np
from pydantic import BeforeValidator


PathLike = Union[str, Path]

# RGB triple with components in [0, 1]
Colour = Tuple[float, float, float]

# numpy array field that also accepts nested lists; dtype and shape are
# normalised by the owning model's validator
Array = Annotated[np.ndarray, BeforeValidator(np.asarray)]
