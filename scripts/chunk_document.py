import argparse
import asyncio
import logging
import os
import sys
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from semantic_chunking.config.settings import settings
from semantic_chunking.models.analysis import TrackingContext
from semantic_chunking.services.chunk_preview import build_chunk_preview
from semantic_chunking.services.morphological_analyzer import analyze_morphology
from semantic_chunking.services.semantic_chunker import semantic_chunker
from semantic_chunking.utils.frontmatter import extract_frontmatter

console = Console()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def load_text(file_path: str) -> str:
    """텍스트/Markdown 파일 로드 (프론트매터 제거)"""
    with open(file_path, 'r', encoding='utf-8') as f:
        content = f.read()

    metadata, body = extract_frontmatter(content)
    if metadata:
        console.print(f"📝 프론트매터: {', '.join(f'{k}={v}' for k, v in metadata.items())}", style="dim")
    return body

async def show_sentences(text: str, provider: str):
    """문장 경계 분석 결과 출력"""
    result = await analyze_morphology(text, provider=provider)

    table = Table(title=f"문장 분리 ({result.metadata.method.value})")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("끝 위치", style="magenta", justify="right")
    table.add_column("문장", style="green")

    for i, (sentence, boundary) in enumerate(zip(result.sentences, result.sentence_boundaries)):
        table.add_row(str(i), str(boundary), sentence)

    console.print(table)
    console.print(f"⏱️  {result.metadata.processing_time:.1f}ms", style="dim")

async def main():
    parser = argparse.ArgumentParser(description="문서 시맨틱 청킹 미리보기")
    parser.add_argument("file", help="청킹할 텍스트/Markdown 파일")
    parser.add_argument("--max-chunk-size", type=int, default=settings.max_chunk_size)
    parser.add_argument("--tenant-id", default=None, help="토큰 사용량 추적용 테넌트 ID")
    parser.add_argument("--sentences", action="store_true", help="문장 경계 분석 결과도 출력")
    parser.add_argument("--provider", choices=["claude", "rule-based"], default=settings.default_provider)
    args = parser.parse_args()

    if not os.path.exists(args.file):
        console.print(f"❌ 파일을 찾을 수 없습니다: {args.file}", style="red")
        return

    text = load_text(args.file)
    console.print(f"[bold blue]시맨틱 청킹 시작[/bold blue] ({len(text)}자)")

    if not semantic_chunker.is_enabled():
        console.print("⚠️  ANTHROPIC_API_KEY가 없어 규칙 기반으로 청킹합니다.", style="yellow")

    if args.sentences:
        await show_sentences(text, args.provider)

    options = semantic_chunker.default_options().model_copy(update={"max_chunk_size": args.max_chunk_size})
    tracking_context = TrackingContext(tenant_id=args.tenant_id)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console
    ) as progress:
        task = progress.add_task("세그먼트 처리 중...", total=None)

        def on_progress(current: int, total: int):
            progress.update(task, description=f"세그먼트 처리 중... ({current}/{total})")

        chunks = await semantic_chunker.semantic_chunk(text, options, on_progress, tracking_context)

    previews, summary = build_chunk_preview(chunks)

    table = Table(title="청크 미리보기")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("타입", style="magenta")
    table.add_column("주제", style="blue")
    table.add_column("점수", justify="right")
    table.add_column("승인", justify="center")
    table.add_column("내용", style="green")

    for preview in previews:
        score_style = "green" if preview.auto_approved else ("red" if preview.quality_score < 50 else "yellow")
        table.add_row(
            str(preview.index),
            preview.type.value,
            preview.topic or "-",
            f"[{score_style}]{preview.quality_score}[/{score_style}]",
            "✅" if preview.auto_approved else "⏳",
            preview.content_preview.replace("\n", " ")
        )

    console.print(table)

    summary_lines = [
        f"총 청크: {summary.total_chunks}",
        f"평균 품질 점수: {summary.avg_quality_score:.1f}",
        f"자동 승인: {summary.auto_approved_count} / 검토 대기: {summary.pending_count}",
    ]
    for warning in summary.warnings:
        summary_lines.append(f"⚠️  {warning.message}")

    console.print(Panel("\n".join(summary_lines), title="요약", border_style="cyan"))

if __name__ == "__main__":
    asyncio.run(main())
