import logging
import sys

from strategy_weights.data_source import SnapshotLoader
from strategy_weights.report import WeightReport
from strategy_weights.service import calculate_simulation_weights, calculate_strategy_weights


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    loader = SnapshotLoader(sys.argv[2]) if len(sys.argv) > 2 else SnapshotLoader()
    bapp_ids = sys.argv[1:2] or loader.list_available()
    if not bapp_ids:
        print("No snapshots found.")
        return

    for bapp_id in bapp_ids:
        snapshot = loader.load(bapp_id)
        ids = [s.id for s in snapshot.token_strategies]

        weights = calculate_strategy_weights(
            snapshot.token_strategies, snapshot.options, snapshot.calculation_type
        )
        print(f"\nBApp {bapp_id} ({snapshot.calculation_type.value} mean)")
        print(WeightReport.as_text(weights, ids))

        results = calculate_simulation_weights(snapshot.deposit_strategies, snapshot.token_configs)
        print("\nRisk-normalized weights")
        print(WeightReport.risk_frame(results).to_string())


if __name__ == "__main__":
    main()
