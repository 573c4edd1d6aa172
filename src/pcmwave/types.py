import os
from typing import BinaryIO, TypeAlias

import numpy as np
from numpy.typing import ArrayLike, NDArray

Signal: TypeAlias = NDArray[np.float64]
SampleInput: TypeAlias = ArrayLike
WaveSource: TypeAlias = str | os.PathLike[str] | BinaryIO
