from __future__ import annotations

from unittest.mock import MagicMock, patch

from import_wizard.services.progress import ValidationProgressBar, is_tty_enabled


def test_is_tty_enabled_follows_stdout():
    with patch("sys.stdout") as mock_stdout:
        mock_stdout.isatty.return_value = True
        assert is_tty_enabled() is True
        mock_stdout.isatty.return_value = False
        assert is_tty_enabled() is False


@patch("import_wizard.services.progress.is_tty_enabled", return_value=False)
def test_non_tty_creates_no_bar(_mock_tty):
    with ValidationProgressBar() as bar:
        assert bar.enabled is False
        assert bar.pbar is None
        bar.update_to(50)
        assert bar.percent == 50


@patch("import_wizard.services.progress.tqdm")
@patch("import_wizard.services.progress.is_tty_enabled", return_value=True)
def test_tty_bar_advances_by_delta(_mock_tty, mock_tqdm):
    pbar = MagicMock()
    mock_tqdm.return_value = pbar
    bar = ValidationProgressBar(description="Validating people.csv")
    mock_tqdm.assert_called_once()
    assert mock_tqdm.call_args.kwargs["total"] == 100
    assert mock_tqdm.call_args.kwargs["desc"] == "Validating people.csv"

    bar.update_to(30)
    bar.update_to(30)
    bar.update_to(10)  # 後退は無視
    bar.update_to(100)
    assert [c.args[0] for c in pbar.update.call_args_list] == [30, 70]

    bar.close()
    pbar.close.assert_called_once()
    assert bar.pbar is None
