"""Builders turning a :class:`~synthlabel.config.ScenarioConfig` into runtime objects."""
