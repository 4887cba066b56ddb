from dataclasses import dataclass

from journey_engine.core.application.cqrs import CommandDTO


@dataclass(frozen=True)
class RunReconciliationSweepCommand(CommandDTO):
    """Envelhece parcelas vencidas e marca planos inadimplentes."""
    triggered_by: str = "beat"
