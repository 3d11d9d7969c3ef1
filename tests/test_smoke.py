"""Minimal smoke tests for the kube-scorecard package."""


def test_package_importable() -> None:
    """Ensure the top-level package exposes the expected namespace."""
    import kube_scorecard

    assert kube_scorecard.__version__
