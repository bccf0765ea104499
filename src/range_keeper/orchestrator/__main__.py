"""Allow running orchestrator as: python -m range_keeper.orchestrator [--config path]."""

from range_keeper.orchestrator.runner import cli

cli()
