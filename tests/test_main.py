import pytest


def test_exception_hook_comes_from_installed_package():
    pytest.importorskip("PyQt5.QtWidgets")
    hook_module = pytest.importorskip("pyqtexcept_forgenet.main")
    import main

    assert main.create_exceptions_hook is hook_module.create_exceptions_hook
    assert callable(main.main)
