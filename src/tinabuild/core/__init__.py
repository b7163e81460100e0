"""Core building blocks for tinabuild: readiness polling, config, process and pipeline."""
