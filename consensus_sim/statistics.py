"""
Statistics collection and reporting.

Tracks simulation metrics and renders node state and summaries as tables.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, TYPE_CHECKING
from collections import Counter, defaultdict
import csv
import os

from tabulate import tabulate

if TYPE_CHECKING:
    from .events import Event
    from .simulator import NetworkSimulator


@dataclass
class EpochMetrics:
    """Validator selection outcome for one epoch."""
    epoch: float
    resolutions: Dict[int, int] = field(default_factory=dict)  # node_id -> validator_id

    @property
    def agreed(self) -> bool:
        """Whether every node that resolved picked the same validator."""
        return len(set(self.resolutions.values())) <= 1

    @property
    def validator(self) -> Optional[int]:
        if not self.resolutions or not self.agreed:
            return None
        return next(iter(self.resolutions.values()))


class MetricsCollector:
    """
    Collects metrics during simulation.

    The simulator reports dispatched events; handlers report sent messages,
    rejections, accepted blocks and validator resolutions.
    """

    def __init__(self):
        self.reset()

    def reset(self):
        """Forget everything collected so far."""
        self.events_by_type: Counter = Counter()
        self.messages_by_type: Counter = Counter()
        self.rejections: Dict[int, Counter] = defaultdict(Counter)  # node_id -> reason -> count
        self.blocks_accepted: Dict[int, List[int]] = defaultdict(list)  # node_id -> block ids
        self.epochs: Dict[float, EpochMetrics] = {}
        self.events: List[Dict[str, Any]] = []

    def record_dispatch(self, event: "Event"):
        self.events_by_type[event.type] += 1

    def record_message(self, msg_type: str):
        self.messages_by_type[msg_type] += 1

    def record_rejection(self, node_id: int, reason: str):
        self.rejections[node_id][reason] += 1

    def record_block(self, node_id: int, block_id: int):
        self.blocks_accepted[node_id].append(block_id)

    def record_validator(self, node_id: int, epoch: float, validator_id: int):
        metrics = self.epochs.setdefault(epoch, EpochMetrics(epoch=epoch))
        metrics.resolutions[node_id] = validator_id

    def record_event(self, event_type: str, sim_time: float, **kwargs):
        """Record a generic scenario event."""
        self.events.append({
            "type": event_type,
            "time": sim_time,
            **kwargs
        })

    @property
    def total_rejections(self) -> Counter:
        total: Counter = Counter()
        for reasons in self.rejections.values():
            total.update(reasons)
        return total

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics."""
        resolved = [m for m in self.epochs.values() if m.resolutions]
        return {
            "events": {
                "dispatched": sum(self.events_by_type.values()),
                "by_type": dict(self.events_by_type),
            },
            "messages": {
                "sent": sum(self.messages_by_type.values()),
                "by_type": dict(self.messages_by_type),
            },
            "consensus": {
                "epochs_resolved": len(resolved),
                "epochs_in_agreement": sum(1 for m in resolved if m.agreed),
                "blocks_accepted": sum(len(ids) for ids in self.blocks_accepted.values()),
            },
            "rejections": dict(self.total_rejections),
        }


class Statistics:
    """
    Statistics analyzer and reporter.

    Generates tables and summaries from collected metrics and node state.
    """

    def __init__(self, collector: MetricsCollector):
        self.collector = collector

    @staticmethod
    def node_rows(simulator: "NetworkSimulator") -> List[List[Any]]:
        """One row per node: id, name, handler, mempool, blocks, head, height, validator."""
        rows = []
        for node_id in sorted(simulator.nodes):
            node = simulator.nodes[node_id]
            tree = node.blocktree
            head = tree.deepest() if tree is not None else None
            rows.append([
                node.id,
                node.name,
                node.handler.kind.value,
                len(node.mempool),
                len(tree) if tree is not None else 0,
                head.id if head is not None else "-",
                tree.depth(head.id) if head is not None else 0,
                node.round.validator_id if node.round is not None and node.round.is_resolved else "-",
            ])
        return rows

    @classmethod
    def format_node_table(cls, simulator: "NetworkSimulator") -> str:
        headers = ["Node", "Name", "Handler", "Mempool", "Blocks", "Head", "Height", "Validator"]
        return tabulate(cls.node_rows(simulator), headers=headers, tablefmt="grid")

    def print_node_table(self, simulator: "NetworkSimulator"):
        """Print per-node protocol state."""
        print("\n" + "="*80)
        print(f"NODE STATE AT t={simulator.current_time:g}")
        print("="*80 + "\n")
        print(self.format_node_table(simulator))
        print()

    def print_summary(self):
        """Print summary statistics."""
        summary = self.collector.get_summary()

        print("\n" + "="*80)
        print("SIMULATION SUMMARY")
        print("="*80)

        print("\n[Events]")
        print(f"  Dispatched: {summary['events']['dispatched']}")
        for event_type, count in sorted(summary["events"]["by_type"].items()):
            print(f"    {event_type}: {count}")

        print("\n[Messages]")
        print(f"  Sent: {summary['messages']['sent']}")
        for msg_type, count in sorted(summary["messages"]["by_type"].items()):
            print(f"    {msg_type}: {count}")

        print("\n[Consensus]")
        cons = summary["consensus"]
        print(f"  Epochs resolved: {cons['epochs_resolved']}")
        print(f"  Epochs in agreement: {cons['epochs_in_agreement']}")
        print(f"  Block acceptances: {cons['blocks_accepted']}")

        print("="*80 + "\n")

    def print_rejection_table(self):
        """Print protocol-validation rejections per node."""
        if not self.collector.rejections:
            print("No rejections recorded")
            return

        reasons = sorted(self.collector.total_rejections)
        headers = ["Node"] + reasons
        rows = [
            [node_id] + [counts.get(reason, 0) for reason in reasons]
            for node_id, counts in sorted(self.collector.rejections.items())
        ]

        print("\n" + "="*80)
        print("REJECTED MESSAGES")
        print("="*80 + "\n")
        print(tabulate(rows, headers=headers, tablefmt="grid"))
        print()

    def print_epoch_table(self):
        """Print validator resolution per epoch."""
        if not self.collector.epochs:
            print("No epochs resolved")
            return

        headers = ["Epoch", "Nodes Resolved", "Validator", "Agreed"]
        rows = []
        for epoch, metrics in sorted(self.collector.epochs.items()):
            rows.append([
                f"{epoch:g}",
                len(metrics.resolutions),
                metrics.validator if metrics.validator is not None else "-",
                "yes" if metrics.agreed else "NO",
            ])

        print(tabulate(rows, headers=headers, tablefmt="grid"))
        print()

    def export_summary_to_dict(self) -> Dict[str, Any]:
        """Export summary as dictionary for external use."""
        return self.collector.get_summary()

    def export_to_csv(self, simulator: "NetworkSimulator", output_dir: str):
        """Export node state and epoch outcomes to CSV files."""
        os.makedirs(output_dir, exist_ok=True)

        with open(os.path.join(output_dir, "nodes.csv"), "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow([
                "node_id", "name", "handler", "mempool_size", "block_count",
                "head_id", "height", "validator_id"
            ])
            writer.writerows(self.node_rows(simulator))

        with open(os.path.join(output_dir, "epochs.csv"), "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["epoch", "node_id", "validator_id"])
            for epoch, metrics in sorted(self.collector.epochs.items()):
                for node_id, validator_id in sorted(metrics.resolutions.items()):
                    writer.writerow([epoch, node_id, validator_id])

        print(f"Exported metrics to {output_dir}/")
