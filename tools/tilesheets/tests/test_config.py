#!/usr/bin/env python3

from __future__ import annotations

import os
import unittest
from pathlib import Path
from unittest import mock

from packages.tilesheet_core.config import DEFAULT_OPTIMIZER, SyncConfig, load_sync_config
from packages.tilesheet_core.errors import ConfigError


class SyncConfigTests(unittest.TestCase):
    def test_defaults_and_derived_paths(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            config = load_sync_config(" V ")

        self.assertEqual(config.namespace, "V")
        self.assertEqual(config.layer_width, 32)
        self.assertEqual(config.chunk_size, 50)
        self.assertEqual(config.optimizer_command, DEFAULT_OPTIMIZER)
        self.assertEqual(config.tile_dir, Path("work") / "tilesheets" / "V")
        self.assertEqual(config.sheet_filename(32, 1), "Tilesheet V 32 1.png")

    def test_environment_values_are_applied(self) -> None:
        env = {
            "TILESHEET_TILES_DIR": "/tmp/tiles",
            "TILESHEET_WORK_DIR": "/tmp/work",
            "TILESHEET_LAYER_WIDTH": "8",
            "TILESHEET_OPTIMIZER": "oxipng -o 4",
            "TILESHEET_OPTIMIZER_WORKERS": "3",
            "TILESHEET_SUMMARY": "bot run",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            config = load_sync_config("IC2")

        self.assertEqual(config.tile_dir, Path("/tmp/tiles/IC2"))
        self.assertEqual(config.work_dir, Path("/tmp/work"))
        self.assertEqual(config.layer_width, 8)
        self.assertEqual(config.optimizer_command, ("oxipng", "-o", "4"))
        self.assertEqual(config.optimizer_workers, 3)
        self.assertEqual(config.summary, "bot run")

    def test_empty_optimizer_disables_recompression(self) -> None:
        with mock.patch.dict(os.environ, {"TILESHEET_OPTIMIZER": ""}, clear=True):
            config = load_sync_config("V")
        self.assertEqual(config.optimizer_command, ())

    def test_overrides_win_over_environment(self) -> None:
        with mock.patch.dict(os.environ, {"TILESHEET_LAYER_WIDTH": "8"}, clear=True):
            config = load_sync_config("V", layer_width=4, work_dir=None, optimizer_command=["true"])
        self.assertEqual(config.layer_width, 4)
        self.assertEqual(config.work_dir, Path("work"))
        self.assertEqual(config.optimizer_command, ("true",))

    def test_invalid_values_raise_config_error(self) -> None:
        with mock.patch.dict(os.environ, {"TILESHEET_LAYER_WIDTH": "wide"}, clear=True):
            with self.assertRaises(ConfigError) as ctx:
                load_sync_config("V")
        self.assertEqual(ctx.exception.error_code, "invalid_config")

        with mock.patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ConfigError):
                load_sync_config("V", colour="red")

        with self.assertRaises(ConfigError):
            SyncConfig(namespace="V", chunk_size=51)
        with self.assertRaises(ConfigError):
            SyncConfig(namespace="  ")


if __name__ == "__main__":
    unittest.main()
