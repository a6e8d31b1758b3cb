"""CLI for evaluating MapGPT prompt routing offline."""

from __future__ import annotations

import argparse
import json
import sys
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from mapgpt.config import Settings, get_settings
from mapgpt.knowledge import get_knowledge_base
from mapgpt.models import Intent, SearchResult
from mapgpt.retrieval import DispatchConfig, RetrievalDispatcher
from mapgpt.services import ChatService, ComposerConfig, PromptComposer


@dataclass(frozen=True)
class RoutingFixture:
    prompt: str
    expected_intent: Intent


@dataclass(frozen=True)
class EvaluationResult:
    total_prompts: int
    correct: int
    accuracy: float
    confusion: dict[str, int]
    details: List[dict]

    def to_dict(self) -> dict:
        return {
            "total_prompts": self.total_prompts,
            "correct": self.correct,
            "accuracy": self.accuracy,
            "confusion": self.confusion,
            "details": self.details,
        }


class _OfflineSource:
    """Stands in for the network collaborators; routing never calls them."""

    async def search(self, query: str, *, news: bool = False) -> Sequence[SearchResult]:
        raise RuntimeError("routing evaluation must not search")

    async def fetch(self) -> Sequence[SearchResult]:
        raise RuntimeError("routing evaluation must not scrape")

    async def complete(self, messages) -> str:
        raise RuntimeError("routing evaluation must not call the model")


def load_dataset(path: Path) -> list[RoutingFixture]:
    data = json.loads(path.read_text(encoding="utf-8"))
    return [
        RoutingFixture(prompt=item["prompt"], expected_intent=Intent(item["expected_intent"]))
        for item in data["prompts"]
    ]


def build_router(settings: Settings) -> ChatService:
    knowledge = get_knowledge_base()
    offline = _OfflineSource()
    dispatcher = RetrievalDispatcher(
        knowledge=knowledge,
        search=offline,
        news=offline,
        config=DispatchConfig(web_search_fallback=settings.web_search_fallback),
    )
    composer = PromptComposer(
        knowledge,
        ComposerConfig(
            system_role_enabled=settings.system_role_enabled,
            domain_guard_enabled=settings.domain_guard_enabled,
        ),
    )
    return ChatService(composer=composer, dispatcher=dispatcher, completer=offline)


def run_evaluation(
    dataset_path: Path,
    *,
    settings: Settings | None = None,
    json_out: Path | None = None,
    markdown_out: Path | None = None,
) -> EvaluationResult:
    settings = settings or get_settings()
    fixtures = load_dataset(dataset_path)
    service = build_router(settings)

    correct = 0
    confusion: Counter[str] = Counter()
    details: list[dict] = []
    for fixture in fixtures:
        actual = service.route(fixture.prompt)
        hit = actual is fixture.expected_intent
        correct += int(hit)
        if not hit:
            confusion[f"{fixture.expected_intent.value}->{actual.value}"] += 1
        details.append(
            {
                "prompt": fixture.prompt,
                "expected": fixture.expected_intent.value,
                "actual": actual.value,
                "correct": hit,
            },
        )

    total = len(fixtures)
    result = EvaluationResult(
        total_prompts=total,
        correct=correct,
        accuracy=correct / total if total else 0.0,
        confusion=dict(confusion),
        details=details,
    )
    if json_out:
        json_out.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
    if markdown_out:
        markdown_out.write_text(_format_markdown(result), encoding="utf-8")
    return result


def _format_markdown(result: EvaluationResult) -> str:
    lines = [
        "# MapGPT Routing Report",
        "",
        f"- Total prompts: {result.total_prompts}",
        f"- Correct: {result.correct}",
        f"- Accuracy: {result.accuracy:.2f}",
        "",
        "| Prompt | Expected | Actual |",
        "| --- | --- | --- |",
    ]
    for item in result.details:
        lines.append(f"| {item['prompt']} | {item['expected']} | {item['actual']} |")
    return "\n".join(lines)


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate MapGPT prompt routing.")
    parser.add_argument(
        "--dataset",
        type=Path,
        default=Path("evaluations/fixtures/routing.json"),
        help="Path to routing dataset JSON file.",
    )
    parser.add_argument("--json-out", type=Path, default=None, help="Optional path to write JSON report")
    parser.add_argument("--markdown-out", type=Path, default=None, help="Optional path to write Markdown report")
    parser.add_argument("--min-accuracy", type=float, default=1.0, help="Fail below this accuracy")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    result = run_evaluation(
        args.dataset,
        settings=get_settings(),
        json_out=args.json_out,
        markdown_out=args.markdown_out,
    )
    print(json.dumps(result.to_dict(), indent=2))

    if result.accuracy < args.min_accuracy:
        print(
            f"Routing evaluation failed threshold (accuracy {result.accuracy:.2f} vs {args.min_accuracy})",
            file=sys.stderr,
        )
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
