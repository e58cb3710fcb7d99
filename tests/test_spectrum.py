import numpy as np
import pytest

from spectrum import Spectrum, SpectrumLoadError, avg_index_of_max


def _write(tmp_path, text, name="spectrum.dat"):
    path = tmp_path / name
    path.write_text(text)
    return path


@pytest.mark.parametrize("step_new, expected_len", [(0.199, 6), (0.2, 6), (0.201, 5)])
def test_points_len_after_recalc_with_step(step_new, expected_len):
    spectrum = Spectrum([0., 0.], step=1., x_start=0.)
    assert spectrum.get_points_len_after_recalc_with_step(step_new) == expected_len


def test_points_len_after_recalc_needs_two_points():
    with pytest.raises(ValueError):
        Spectrum([1.], step=1., x_start=0.).get_points_len_after_recalc_with_step(0.5)


def test_recalculated_with_step_interpolates_linearly():
    spectrum = Spectrum([0., 10.], step=1., x_start=3.)
    recalculated = spectrum.recalculated_with_step(0.25)
    assert recalculated.step == 0.25
    assert recalculated.x_start == 3.
    assert np.allclose(recalculated.points, [0., 2.5, 5., 7.5, 10.])


def test_recalculated_with_step_last_point_past_last_sample_by_rounding():
    # (0.4 - 0.1) / 0.1 evaluates to 3.0000000000000004, ceil gives index 4
    spectrum = Spectrum([1., 2., 3., 4.], step=0.1, x_start=0.1)
    recalculated = spectrum.recalculated_with_step(0.05)
    assert len(recalculated) == 7
    assert np.allclose(recalculated.points, [1., 1.5, 2., 2.5, 3., 3.5, 4.])


@pytest.mark.parametrize("step_new", [0., -1., float("nan"), float("inf")])
def test_recalculated_with_step_rejects_bad_step(step_new):
    with pytest.raises(ValueError):
        Spectrum([0., 1.], step=1., x_start=0.).recalculated_with_step(step_new)


def test_x_range_and_x_end_differ_by_one_step():
    spectrum = Spectrum([1., 2., 3.], step=0.5, x_start=1.)
    assert spectrum.get_x_range() == 1.
    assert spectrum.get_x_end() == 2.5
    assert spectrum.get_x_from_index(1) == 1.5
    assert spectrum.get_xy_from_index(2) == (2., 3.)


def test_indices_of_closest_to_lhs_rhs():
    spectrum = Spectrum([1., 2., 3.], step=1., x_start=0.)
    assert spectrum.get_indices_of_closest_to_lhs_rhs(1.) == (1, 1)
    assert spectrum.get_indices_of_closest_to_lhs_rhs(1.5) == (1, 2)
    with pytest.raises(ValueError):
        spectrum.get_indices_of_closest_to_lhs_rhs(-0.1)


def test_load_from_file(tmp_path):
    path = _write(tmp_path, "0 1\n1 2\n2 3\n")
    spectrum = Spectrum.load_from_file(path)
    assert spectrum == Spectrum([1., 2., 3.], step=1., x_start=0.)


def test_load_from_file_accepts_tabs_and_decimal_commas(tmp_path):
    path = _write(tmp_path, "0,5\t1,5\n1,0\t2\n1,5\t2,5\n")
    spectrum = Spectrum.load_from_file(path)
    assert spectrum.x_start == 0.5
    assert spectrum.step == 0.5
    assert np.allclose(spectrum.points, [1.5, 2., 2.5])


def test_load_from_file_tolerates_small_step_jitter(tmp_path):
    path = _write(tmp_path, "0 1\n1 2\n2.01 3\n")
    assert len(Spectrum.load_from_file(path)) == 3


@pytest.mark.parametrize("text", [
    "0 1\n1 2\n3 3\n",      # non uniform step
    "0 1 5\n1 2 6\n",       # three columns
    "0 1\n1\n",             # missing y
    "abc 1\n1 2\n",         # not a number
    "0 1\n",                # no step
    "",                     # empty
])
def test_load_from_file_errors(tmp_path, text):
    path = _write(tmp_path, text)
    with pytest.raises(SpectrumLoadError):
        Spectrum.load_from_file(path)


def test_load_from_missing_file(tmp_path):
    with pytest.raises(SpectrumLoadError):
        Spectrum.load_from_file(tmp_path / "nope.dat")


def test_write_to_file_with_header(tmp_path):
    path = tmp_path / "out.dat"
    Spectrum([1., 2.], step=0.5, x_start=1.).write_to_file(path, header="params:")
    assert path.read_text().splitlines() == ["params:", "1.0\t1.0", "1.5\t2.0"]


def test_load_from_file_as_instrumental_trims_and_centers(tmp_path):
    path = _write(tmp_path, "0 0\n1 0\n2 1\n3 0.5\n4 0\n")
    instrument = Spectrum.load_from_file_as_instrumental(path)
    assert np.array_equal(instrument.points, [0., 1., 0.5])
    assert instrument.x_start == 1.


def test_load_from_file_as_instrumental_all_zeros(tmp_path):
    path = _write(tmp_path, "0 0\n1 0\n2 0\n")
    with pytest.raises(SpectrumLoadError):
        Spectrum.load_from_file_as_instrumental(path)


def test_pad_zeros_appends_when_max_is_right_of_center():
    spectrum = Spectrum([0.5, 1., 2.], step=1., x_start=0.)
    spectrum.pad_zeros()
    assert np.array_equal(spectrum.points, [0.5, 1., 2., 0., 0.])
    assert spectrum.x_start == 0.


def test_trim_zeros_all_zeros():
    with pytest.raises(ValueError):
        Spectrum([0., 0.], step=1., x_start=0.).trim_zeros()


def test_avg_index_of_max():
    assert avg_index_of_max([0., 2., 2., 0.]) == 1.5
    assert avg_index_of_max([3., 1.]) == 0.
