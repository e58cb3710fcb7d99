"""
Instrument Convolution

Discrete "same"-length convolution of a deconvolved curve with a centered,
odd-length instrument function.
"""

import numpy as np


def convolve_by_points(points_instrument, points_deconvolved):
    """
    Convolve deconvolved points with the instrument function.

    Output has the same length as `points_deconvolved`; samples outside of
    it are treated as zeros. For every output index the terms are summed in
    increasing instrument index order.

    Parameters:
    -----------
    points_instrument : array
        Instrument function, odd length, center is the zero shift
    points_deconvolved : array
        Curve to be convolved

    Returns:
    --------
    array : Convolved points
    """
    points_instrument = np.asarray(points_instrument, dtype=float)
    points_deconvolved = np.asarray(points_deconvolved, dtype=float)
    instrument_len = len(points_instrument)
    deconvolved_len = len(points_deconvolved)
    assert instrument_len % 2 == 1, f"instrument length must be odd, got {instrument_len}"

    half = instrument_len // 2
    points_convolved = np.zeros(deconvolved_len, dtype=float)
    for j in range(instrument_len):
        # output[i] += instrument[j] * deconvolved[i - (j - half)]
        shift = j - half
        i_first = max(0, shift)
        i_last = min(deconvolved_len, deconvolved_len + shift)
        if i_first >= i_last:
            continue
        points_convolved[i_first:i_last] += (
            points_instrument[j] * points_deconvolved[i_first - shift:i_last - shift]
        )
    return points_convolved
