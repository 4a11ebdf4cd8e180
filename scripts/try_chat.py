import asyncio
import dataclasses
import json
import os
import sys

sys.path.insert(0, ".")

from data_analyzer.models import Table
from data_analyzer.pipeline import analyze_structured, chat
from data_analyzer.providers import build_provider_clients


def _as_dict(result):
    if dataclasses.is_dataclass(result):
        return dataclasses.asdict(result)
    return result.model_dump()


async def main():
    primary, secondary = build_provider_clients()

    # "How was February's revenue compared to January?"
    message = os.getenv("CHAT_TEST_MESSAGE", "داهاتی مانگی شوبات چۆن بوو بەراورد بە کانوون؟")
    context = {"tables": [{"name": "sales", "columns": ["month", "revenue"], "rows": [["Jan", 120], ["Feb", 135]]}]}

    result = await chat(message, context, primary, secondary)
    print("CHAT RESULT:")
    print(json.dumps(_as_dict(result), ensure_ascii=False, indent=2))

    if os.getenv("ANALYZE_TEST", "false").lower() in ("1", "true", "yes"):
        table = Table(
            name="sales",
            columns=["month", "revenue"],
            rows=[{"month": "Jan", "revenue": 120}, {"month": "Feb", "revenue": 135}, {"month": "Mar", "revenue": 128}],
        )
        analysis = await analyze_structured([table], [], "", primary, secondary)
        print("\nANALYSIS RESULT (first 600 chars):")
        print(json.dumps(_as_dict(analysis), ensure_ascii=False)[:600])


if __name__ == "__main__":
    asyncio.run(main())
