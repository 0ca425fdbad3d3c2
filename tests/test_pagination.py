import pytest

from palomar.exceptions import InvalidParams
from palomar.search.pagination import check_params


@pytest.mark.parametrize(
    "offset,size",
    [(0, 0), (0, 25), (0, 250), (10000, 0), (9750, 250), (9999, 1)],
)
def test_check_params_accepts_in_bounds(offset: int, size: int) -> None:
    check_params(offset, size)


@pytest.mark.parametrize(
    "offset,size",
    [(-1, 0), (0, -1), (0, 251), (10001, 0), (9999, 2), (9800, 250)],
)
def test_check_params_rejects_out_of_bounds(offset: int, size: int) -> None:
    with pytest.raises(InvalidParams):
        check_params(offset, size)
