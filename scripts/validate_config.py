#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from algo_app.config.loader import ConfigLoader
from algo_app.config.validation import ConfigValidator, ValidationError
from algo_app.strategies import AlgorithmType


def validate_algorithm_config(loader: ConfigLoader, algorithm_type: str,
                              overrides: dict = None) -> List[ValidationError]:
    """Validate the merged configuration of one algorithm type."""
    config = loader.merge_config(algorithm_type, overrides)
    return ConfigValidator.validate_algorithm_config(algorithm_type, config)


def report(label: str, errors: List[ValidationError]) -> bool:
    if errors:
        print(f"❌ Found {len(errors)} validation errors:")
        for error in errors:
            print(f"  • {error.field}: {error.message} (value: {error.value})")
        return False
    print(f"✅ {label} configuration is valid")
    return True


def main():
    """Main validation function."""
    print("🔍 Validating algorithm configuration...")

    loader = ConfigLoader.create()
    print(f"📁 Presets directory: {loader.config_dir}")

    all_valid = True

    for algorithm_type in AlgorithmType:
        print(f"\n📊 Validating {algorithm_type.value}...")
        try:
            all_valid &= report(algorithm_type.value, validate_algorithm_config(loader, algorithm_type.value))
        except Exception as e:
            print(f"❌ Error validating {algorithm_type.value}: {e}")
            all_valid = False

    # Request-level overrides on top of the presets
    print("\n📋 Testing request-level overrides...")
    test_overrides = {
        "parameters": {"entry_deviation": 2.5, "bollinger_bands": {"deviation": 2.5}},
        "risk_limits": {"max_drawdown": 8.0},
        "execution_settings": {"max_concurrent_positions": 2},
    }
    try:
        all_valid &= report("Override", validate_algorithm_config(loader, "mean_reversion", test_overrides))
    except Exception as e:
        print(f"❌ Error testing overrides: {e}")
        all_valid = False

    if all_valid:
        print("\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print("\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
