"""
Spectrum - Uniformly Sampled 1-D Signal

Holds measured or instrumental spectra on a uniform x grid and provides
resampling, coordinate lookup and plain-text input/output.
"""

import math

import numpy as np
import pandas as pd


STEP_RELATIVE_TOLERANCE = 2e-2


class SpectrumLoadError(Exception):
    """Raised when a spectrum file can't be read or parsed."""


class Spectrum:
    """
    Uniformly sampled signal: x_i = x_start + i*step.
    """

    def __init__(self, points, step, x_start):
        self.points = np.asarray(points, dtype=float)
        self.step = float(step)
        self.x_start = float(x_start)

    def __len__(self):
        return len(self.points)

    def __eq__(self, other):
        if not isinstance(other, Spectrum):
            return NotImplemented
        return (self.step == other.step
                and self.x_start == other.x_start
                and np.array_equal(self.points, other.points))

    def __repr__(self):
        return f"Spectrum(points={len(self.points)}, step={self.step}, x_start={self.x_start})"

    def copy(self):
        return Spectrum(self.points.copy(), self.step, self.x_start)

    def get_x_range(self):
        # uses N-1, unlike `get_x_end`
        return self.step * max(len(self.points) - 1, 0)

    def get_x_end(self):
        return self.get_x_from_index(len(self.points))

    def get_x_from_index(self, i):
        return self.x_start + self.step * i

    def get_y_from_index(self, i):
        return self.points[i]

    def get_xy_from_index(self, i):
        return self.get_x_from_index(i), self.get_y_from_index(i)

    def get_xs(self):
        return self.x_start + self.step * np.arange(len(self.points), dtype=float)

    def get_indices_of_closest_to_lhs_rhs(self, x):
        """
        Indices of the samples just left and right of `x`.

        Returns:
        --------
        tuple : (floor(index), ceil(index)), equal when `x` hits a sample
        """
        if not (self.x_start <= x <= self.get_x_end()):
            raise ValueError(
                f"x={x} is outside of spectrum range [{self.x_start}, {self.get_x_end()}]"
            )
        index_as_float = (x - self.x_start) / self.step
        return math.floor(index_as_float), math.ceil(index_as_float)

    def get_points_len_after_recalc_with_step(self, step_new):
        if len(self.points) <= 1:
            raise ValueError("spectrum must have at least two points to be recalculated")
        return math.floor(self.get_x_range() / step_new) + 1

    def recalculated_with_step(self, step_new):
        """
        Resample spectrum onto a new step using linear interpolation.

        The last partial interval is truncated, not rounded up.

        Parameters:
        -----------
        step_new : float
            New sampling step, must be finite and positive

        Returns:
        --------
        Spectrum : New spectrum with the same x_start
        """
        if not math.isfinite(step_new) or step_new <= 0:
            raise ValueError(f"new step must be finite and positive, got {step_new}")
        points_len = self.get_points_len_after_recalc_with_step(step_new)
        result = Spectrum([], step_new, self.x_start)
        points_new = np.empty(points_len, dtype=float)
        index_last = len(self.points) - 1
        for i in range(points_len):
            x = result.get_x_from_index(i)
            index_lhs, index_rhs = self.get_indices_of_closest_to_lhs_rhs(x)
            # rounding can push the last x a hair past the last sample
            index_lhs, index_rhs = min(index_lhs, index_last), min(index_rhs, index_last)
            if index_lhs == index_rhs:
                y = self.points[index_lhs]
            else:
                assert index_rhs - index_lhs == 1
                t = min(max((x - self.get_x_from_index(index_lhs)) / self.step, 0.), 1.)
                y = (1. - t) * self.points[index_lhs] + t * self.points[index_rhs]
            points_new[i] = y
        result.points = points_new
        return result

    def write_to_file(self, file_path, decimal_point=".", separator="\t", header=None, mode="w"):
        """Write `x<separator>y` lines, optionally after a header text."""
        with open(file_path, mode) as f:
            if header:
                f.write(header if header.endswith("\n") else header + "\n")
            for i in range(len(self.points)):
                x, y = self.get_xy_from_index(i)
                x_str = repr(float(x)).replace(".", decimal_point)
                y_str = repr(float(y)).replace(".", decimal_point)
                f.write(f"{x_str}{separator}{y_str}\n")

    @classmethod
    def load_from_file(cls, file_path):
        """
        Load spectrum from two-column text file.

        Columns are separated by spaces or tabs, `,` is accepted as decimal
        point. The step is taken from the first two x values, all following
        spacings must agree with it within 2%.

        Parameters:
        -----------
        file_path : str or Path
            Path to the text file

        Returns:
        --------
        Spectrum : Loaded spectrum
        """
        try:
            df = pd.read_csv(file_path, sep=r"\s+", header=None, dtype=str,
                             skip_blank_lines=True)
        except FileNotFoundError:
            raise SpectrumLoadError(f"Unable to open file: `{file_path}`")
        except pd.errors.EmptyDataError:
            raise SpectrumLoadError(f"`{file_path}`: file is empty")
        except pd.errors.ParserError as e:
            raise SpectrumLoadError(f"`{file_path}`: malformed line: {e}")

        if df.shape[1] != 2:
            raise SpectrumLoadError(
                f"`{file_path}`: expected two columns (x and y), found {df.shape[1]}"
            )
        if df.isna().any().any():
            line_index = int(np.flatnonzero(df.isna().any(axis=1).to_numpy())[0])
            raise SpectrumLoadError(
                f"`{file_path}`: unable to split line {line_index + 1} at space or tab"
            )

        def to_floats(column, name):
            values = pd.to_numeric(column.str.replace(",", ".", regex=False), errors="coerce")
            bad = values.isna().to_numpy()
            if bad.any():
                i = int(np.flatnonzero(bad)[0])
                raise SpectrumLoadError(
                    f"`{file_path}`: unable to parse `{name}` at line {i + 1}: `{column.iloc[i]}`"
                )
            return values.to_numpy(dtype=float)

        xs = to_floats(df.iloc[:, 0], "x")
        ys = to_floats(df.iloc[:, 1], "y")

        if len(xs) < 2:
            raise SpectrumLoadError(f"`{file_path}`: need at least two points to find step")

        step = xs[1] - xs[0]
        for i in range(2, len(xs)):
            this_step = xs[i] - xs[i - 1]
            diff = abs(this_step - step) / abs(step)
            if not diff < STEP_RELATIVE_TOLERANCE:
                raise SpectrumLoadError(
                    f"`{file_path}`: non uniform step at line {i + 1}: "
                    f"step={step}, this_step={this_step} => diff={diff}"
                )

        return cls(ys, step, xs[0])

    @classmethod
    def load_from_file_as_instrumental(cls, file_path):
        """
        Load instrument function and center it.

        Leading and trailing zeros are trimmed, then zeros are padded so that
        the maximum ends up in the middle of an odd-length kernel.
        """
        spectrum = cls.load_from_file(file_path)
        try:
            spectrum.trim_zeros()
        except ValueError as e:
            raise SpectrumLoadError(f"`{file_path}`: {e}") from None
        spectrum.pad_zeros()
        if len(spectrum.points) % 2 != 1:
            raise SpectrumLoadError(f"`{file_path}`: instrument function must have odd length")
        if len(spectrum.points) // 2 != avg_index_of_max(spectrum.points):
            raise SpectrumLoadError(f"`{file_path}`: instrument function isn't centered")
        return spectrum

    def trim_zeros(self):
        non_zero = np.flatnonzero(self.points != 0.)
        if len(non_zero) == 0:
            raise ValueError("instrumental function must have at least one non zero")
        first, last = non_zero[0], non_zero[-1]
        self.points = self.points[first:last + 1].copy()
        self.x_start += self.step * first

    def pad_zeros(self):
        points = self.points
        if len(points) == 0:
            raise ValueError("can't pad empty spectrum")
        if len(points) == 1:
            return
        index_of_center = len(points) / 2. - 0.5
        shift_of_max = avg_index_of_max(points) - index_of_center
        if shift_of_max == 0.:
            return
        zeros_len = 2 * int(abs(shift_of_max)) + (1 if len(points) % 2 == 0 else 0)
        zeros = np.zeros(zeros_len)
        if shift_of_max < 0:
            self.x_start -= self.step * zeros_len
            self.points = np.concatenate([zeros, points])
        else:
            self.points = np.concatenate([points, zeros])


def avg_index_of_max(points):
    """Average of all indices where `points` reaches its maximum."""
    points = np.asarray(points, dtype=float)
    if len(points) == 0:
        raise ValueError("can't find max of empty points")
    indices_of_maxes = np.flatnonzero(points == points.max())
    return float(np.mean(indices_of_maxes))
