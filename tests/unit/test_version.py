"""Test basic package setup and version."""
import foundry_relay


def test_version_exists() -> None:
    """Test that version is defined."""
    assert hasattr(foundry_relay, "__version__")
    assert foundry_relay.__version__ is not None


def test_version_format() -> None:
    """Test that version follows expected format."""
    version = foundry_relay.__version__
    assert isinstance(version, str)
    assert len(version.split(".")) >= 2
