"""Test configuration loading, overrides and validation"""

import yaml

from nowplaying_lyrics.config.settings import Settings, get_settings


def write_config(path, data):
    path.write_text(yaml.safe_dump(data), encoding='utf-8')
    return str(path)


class TestSettings:
    """Test settings sources and validation"""

    def test_defaults(self, test_settings):
        assert test_settings.player.backend == "auto"
        assert test_settings.player.poll_interval == 1.0
        assert test_settings.player.query_timeout == 3.0
        assert test_settings.lyrics.sources == ["lrclib", "netease", "qqmusic"]
        assert test_settings.notifications.error_cooldown == 30.0
        assert test_settings.cache_ttl_ms == 24 * 60 * 60 * 1000
        assert test_settings.validate()

    def test_global_instance_is_patched(self, test_settings):
        assert get_settings() is test_settings

    def test_yaml_values_applied(self, temp_dir):
        config = write_config(temp_dir / "custom.yaml", {
            'player': {'backend': 'playerctl', 'poll_interval': 0.5, 'unknown_key': 1},
            'lyrics': {'sources': ['netease']},
            'security': {'config_directory': str(temp_dir / 'home')},
        })

        settings = Settings(config)

        assert settings.player.backend == "playerctl"
        assert settings.player.poll_interval == 0.5
        assert settings.lyrics.sources == ["netease"]
        assert not hasattr(settings.player, 'unknown_key')

    def test_environment_overrides(self, temp_dir, monkeypatch):
        config = write_config(temp_dir / "env.yaml", {
            'player': {'backend': 'applescript'},
            'security': {'config_directory': str(temp_dir / 'home')},
        })
        monkeypatch.setenv('NOWPLAYING_LYRICS_BACKEND', 'playerctl')
        monkeypatch.setenv('NOWPLAYING_LYRICS_SOURCES', 'qqmusic, lrclib')
        monkeypatch.setenv('NOWPLAYING_LYRICS_POLL_INTERVAL', 'fast')

        settings = Settings(config)

        assert settings.player.backend == "playerctl"
        assert settings.lyrics.sources == ["qqmusic", "lrclib"]
        assert settings.player.poll_interval == 1.0

    def test_validation_errors(self, test_settings):
        test_settings.player.backend = "winamp"
        test_settings.player.poll_interval = 10
        test_settings.lyrics.sources = ["lrclib", "genius"]
        test_settings.network.rate_limit = 0

        errors = test_settings.get_validation_errors()

        assert len(errors) == 4
        assert any("winamp" in error for error in errors)
        assert any("genius" in error for error in errors)
        assert not test_settings.validate()

    def test_save_and_reload(self, test_settings, temp_dir):
        test_settings.lyrics.sources = ["netease", "lrclib"]
        test_settings.player.poll_interval = 2.0

        saved = test_settings.save_config(str(temp_dir / "saved.yaml"))
        reloaded = Settings(str(saved))

        assert reloaded.lyrics.sources == ["netease", "lrclib"]
        assert reloaded.player.poll_interval == 2.0
        assert reloaded.lyrics.credit_markers == test_settings.lyrics.credit_markers

    def test_fractional_value_for_whole_number_rejected(self, temp_dir, capsys):
        config = write_config(temp_dir / "rate.yaml", {
            'network': {'rate_limit': 0.5, 'request_timeout': 5},
            'logging': {'backup_count': 4.0},
            'security': {'config_directory': str(temp_dir / 'home')},
        })

        settings = Settings(config)

        assert settings.network.rate_limit == 2
        assert settings.network.request_timeout == 5.0
        assert isinstance(settings.network.request_timeout, float)
        assert settings.logging.backup_count == 4
        assert "network.rate_limit" in capsys.readouterr().out
