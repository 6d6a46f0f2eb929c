"""Shared pytest fixtures for versioner tests."""
import hashlib
import os
from pathlib import Path
from typing import Any, Dict, Iterator

import pytest
import yaml

from versioner.core import logging as versioner_logging

UPDATES_PACKAGE_KT = """\
package expo.modules.updates

import android.content.Context
import expo.modules.core.interfaces.Package
import expo.modules.core.interfaces.ReactNativeHostHandler
// WHEN_VERSIONING_REMOVE_FROM_HERE
import expo.modules.updates.UpdatesDevLauncherController
import expo.modules.updates.UpdatesController
import expo.modules.updates.loader.LoaderTask
// WHEN_VERSIONING_REMOVE_TO_HERE

class UpdatesPackage : Package {
  override fun createReactNativeHostHandlers(context: Context): List<ReactNativeHostHandler> {
    return listOf()
  }
}
"""

UPDATES_MODULE_JAVA = """\
package expo.modules.updates;

import expo.modules.core.interfaces.InternalModule;
// EXPO_VERSIONING_NEEDS_EXPOVIEW_R

public class UpdatesModule implements InternalModule {
  private static final String NAME = "expo.modules.updates.UpdatesModule";
  private final int layout = R.layout.updates;
}
"""

MANIFEST_XML = """\
<manifest xmlns:android="http://schemas.android.com/apk/res/android"
  package="expo.modules.updates">
  <application>
    <meta-data android:name="expo.modules.updates.ENABLED" android:value="true"/>
  </application>
</manifest>
"""

BUILD_GRADLE = """\
apply plugin: 'com.android.library'

group = 'expo.modules.updates'
"""

# A small PNG header; never valid UTF-8
BINARY_ASSET = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe"


def write_tree(root: Path, files: Dict[str, Any]) -> Path:
    """Create files under root from a {relative path: text or bytes} mapping."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
    return root


def tree_digest(root: Path) -> Dict[str, str]:
    """Map every file under root to the SHA-256 of its bytes."""
    return {
        path.relative_to(root).as_posix(): hashlib.sha256(path.read_bytes()).hexdigest()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def module_files() -> Dict[str, Any]:
    """Files of a typical Android library module."""
    return {
        "build.gradle": BUILD_GRADLE,
        "src/main/AndroidManifest.xml": MANIFEST_XML,
        "src/main/java/expo/modules/updates/UpdatesModule.java": UPDATES_MODULE_JAVA,
        "src/main/java/expo/modules/updates/UpdatesPackage.kt": UPDATES_PACKAGE_KT,
        "src/main/kotlin/expo/modules/updates/db/UpdatesDatabase.kt": (
            "package expo.modules.updates.db\n\nobject UpdatesDatabase\n"
        ),
        "src/main/res/drawable/icon.png": BINARY_ASSET,
    }


@pytest.fixture
def module_tree(tmp_path: Path, module_files: Dict[str, Any]) -> Path:
    """Create a module source tree on disk."""
    return write_tree(tmp_path / "android", module_files)


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    """Destination root (not created)."""
    return tmp_path / "versioned"


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Provide a sample versioner configuration."""
    return {
        "versioner": {
            "version": "ABI45_0_0",
            "module": "expo-updates",
            "packages_to_keep": ["expo.modules.core.interfaces"],
            "packages_to_rename": ["expo.modules"],
            "workers": 2,
            "halt_on_error": False,
            "logging": {"level": "DEBUG", "file": None},
            "modules": {
                "expo-updates": {
                    "content": [
                        {
                            "paths": "./src/main/java/**/*.java",
                            "find": "R\\.layout",
                            "replace_with": "{{ version }}.host.exp.expoview.R.layout",
                        }
                    ]
                }
            },
        }
    }


@pytest.fixture
def config_file(tmp_path: Path, sample_config: Dict[str, Any]) -> Path:
    """Create a configuration file."""
    config_path = tmp_path / "versioning.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture(autouse=True)
def reset_global_logger(monkeypatch) -> Iterator[None]:
    """Give every test a fresh global logger and a clean environment."""
    for key in list(os.environ):
        if key.startswith("VERSIONER_"):
            monkeypatch.delenv(key, raising=False)
    versioner_logging.set_global_logger(None)
    yield
    versioner_logging.set_global_logger(None)
