from django.core.management.base import BaseCommand

from milestone_billing.adapters.config.composition_root import container as billing_container
from milestone_billing.adapters.observability.metrics import observe_sweep
from milestone_billing.core.application.commands.reconciliation_commands import RunReconciliationSweepCommand


class Command(BaseCommand):
    help = "Executa a varredura de cobrança: parcelas vencidas e planos inadimplentes."

    def handle(self, *args, **opts):
        result = billing_container.command_bus().dispatch(RunReconciliationSweepCommand(triggered_by="cli"))
        observe_sweep(result)

        style = self.style.WARNING if result.failed_plan_ids else self.style.SUCCESS
        self.stdout.write(style(
            f"Varredura: {result.plans_checked} planos verificados, "
            f"{result.installments_aged} parcelas vencidas, "
            f"{result.plans_defaulted} planos inadimplentes, "
            f"{len(result.failed_plan_ids)} falhas"
        ))
