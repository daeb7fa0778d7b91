"""Tests for shared config path constants."""

from whisper_session.l3_interface_adapters.gateways.paths import CONFIG_DIR, DEFAULT_CONFIG_PATHS


class TestPaths:
    def test_config_dir_named_after_app(self):
        assert CONFIG_DIR.name == 'whisper-session'

    def test_default_config_paths_order(self):
        assert [p.name for p in DEFAULT_CONFIG_PATHS] == ['config.yaml', 'config.yml']
        assert all(p.parent == CONFIG_DIR for p in DEFAULT_CONFIG_PATHS)
