"""CLI commands for the bid outline tool.

Commands:
- init: Create the project database
- import-project: Register a project from parse output (JSON)
- list: List projects
- show / export: Display or export a project's normalized outline
- apply-yaml: Replace an outline with a reviewed YAML file
- add-section / remove-section / set-field: Edit outline nodes
- add-file / remove-file / rename-file: Edit submission files
- confirm: Mark a project's review as completed
- delete: Remove a project
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from bidding.config.app_config import load_app_config
from bidding.core.editing_session import EditingSession
from bidding.core.normalizer import SKELETON_SUMMARIES, normalize, normalize_project
from bidding.core.outline_model import DEFAULT_DESCRIPTION, OutlineDocumentSet, OutlineNode
from bidding.core.outline_tree import OutlineTreeError, get_node, iter_nodes
from bidding.core.outline_yaml import (
    OutlineYamlError,
    dump_outline_yaml,
    read_outline_yaml,
    write_outline_yaml,
)
from bidding.core.review import (
    OUTLINE_SECTION_KEY,
    ReviewError,
    load_outline,
    open_review,
)
from bidding.db.database import init_db
from bidding.db.projects_repository import (
    SqliteOutlineStore,
    delete_project,
    get_all_project_ids,
    get_all_projects,
    insert_project,
    update_status,
)
from bidding.utils.validators import (
    AmbiguousProjectIdError,
    InvalidPathError,
    ProjectIdNotFoundError,
    format_path,
    parse_path,
    resolve_project_id,
)

app = typer.Typer(
    name="bid",
    help="Bid-document outline review tool.",
    no_args_is_help=True,
)

console = Console()

STATUS_COLORS = {
    "pending": "white",
    "parsing": "blue",
    "parsed": "cyan",
    "failed": "red",
    "completed": "green",
}


def _init_storage() -> SqliteOutlineStore:
    """Open the configured database and return the outline store."""
    config = load_app_config()
    init_db(Path(config.storage.db_path))
    return SqliteOutlineStore()


def _resolve_mode(mode: str | None) -> str:
    if mode is None:
        return load_app_config().editor.default_mode
    if mode not in SKELETON_SUMMARIES:
        console.print(f"[red]✗ 未知模式 '{mode}'，可选: {', '.join(SKELETON_SUMMARIES)}[/red]")
        raise typer.Exit(code=1)
    return mode


def _resolve_project_id_or_exit(prefix: str) -> str:
    """Resolve project_id prefix to full ID, or exit with helpful error."""
    candidates = get_all_project_ids()
    try:
        return resolve_project_id(prefix, candidates)
    except ProjectIdNotFoundError as e:
        console.print(f"[red]✗ {e}[/red]")
        if candidates:
            console.print("\n现有项目:")
            for c in sorted(candidates):
                console.print(f"  - {c}")
        raise typer.Exit(code=1)
    except AmbiguousProjectIdError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _parse_path_or_exit(text: str) -> tuple[int, ...]:
    try:
        return parse_path(text)
    except InvalidPathError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _edit_outline(
    project_id: str,
    action: Callable[[EditingSession], str],
    mode: str | None = None,
) -> None:
    """Run one edit against a project's outline and save it.

    action receives the session in Editing state and returns a message
    describing what it changed. If the working copy is left unmodified,
    the edit is cancelled and nothing is saved.
    """
    store = _init_storage()
    resolved_id = _resolve_project_id_or_exit(project_id)
    config = load_app_config()

    try:
        session = open_review(
            resolved_id,
            store,
            mode=_resolve_mode(mode),  # type: ignore[arg-type]
            cancel_policy=config.editor.cancel_policy,  # type: ignore[arg-type]
        )
        session.begin_edit(OUTLINE_SECTION_KEY)
        message = action(session)
        if not session.is_modified:
            session.cancel()
            console.print(f"[yellow]{escape(message)}[/yellow]")
            return
        session.save()
    except (OutlineTreeError, ReviewError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {escape(message)}[/green]")


def _node_label(node: OutlineNode, path: tuple[int, ...], show_content: bool) -> str:
    label = f"[dim]{format_path(path)}[/dim] [bold]{escape(node.title)}[/bold]"
    if node.description:
        label += f"\n[dim]说明：{escape(node.description)}[/dim]"
    if node.content_format:
        if show_content:
            label += f"\n[cyan]{escape(node.content_format)}[/cyan]"
        else:
            label += f" [cyan](正文模板 {len(node.content_format)} 字)[/cyan]"
    return label


def _render_outline(doc: OutlineDocumentSet, show_content: bool = False) -> Tree:
    root = Tree(f"[yellow]{escape(doc.summary)}[/yellow]")

    def _add(branch: Tree, nodes: tuple[OutlineNode, ...], prefix: tuple[int, ...]) -> None:
        for i, node in enumerate(nodes):
            path = prefix + (i,)
            child = branch.add(_node_label(node, path, show_content))
            _add(child, node.children, path)

    for file_index, file in enumerate(doc.files):
        branch = root.add(f"[bold magenta]{file_index}. {escape(file.name)}[/bold magenta]")
        _add(branch, file.items, ())
    return root


@app.command()
def init() -> None:
    """Create the project database if it doesn't exist."""
    config = load_app_config()
    db_path = init_db(Path(config.storage.db_path))
    console.print(f"[green]✓ 数据库已就绪: {db_path}[/green]")


@app.command(name="import-project")
def import_project(
    json_file: Path = typer.Argument(..., help="Parse output or project export (JSON)"),
    name: str | None = typer.Option(None, "--name", "-n", help="Project name"),
    project_id: str | None = typer.Option(None, "--id", help="Project ID (default: timestamp)"),
) -> None:
    """Register a parsed project.

    Accepts either raw parse output or a project export with
    ``projectName`` and ``parsedData`` keys.
    """
    if not json_file.exists():
        console.print(f"[red]✗ 文件不存在: {json_file}[/red]")
        raise typer.Exit(code=1)

    try:
        data = json.loads(json_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]✗ JSON 解析失败: {e}[/red]")
        raise typer.Exit(code=1)

    if not isinstance(data, dict):
        console.print("[red]✗ JSON 顶层必须是对象[/red]")
        raise typer.Exit(code=1)

    parsed_data = data.get("parsedData", data)
    if not isinstance(parsed_data, dict):
        parsed_data = {}
    project_name = name or data.get("projectName") or json_file.stem
    new_id = project_id or str(int(time.time() * 1000))

    _init_storage()
    if new_id in get_all_project_ids():
        console.print(f"[red]✗ 项目已存在: {new_id}[/red]")
        raise typer.Exit(code=1)

    mode = load_app_config().editor.default_mode
    project_data = normalize_project(parsed_data, mode)  # type: ignore[arg-type]
    insert_project(
        new_id,
        project_name,
        file_name=json_file.name,
        status="parsed",
        parsed_data=project_data,
    )
    doc = normalize(project_data, mode)  # type: ignore[arg-type]
    console.print(f"[green]✓ 已导入项目 {new_id}[/green]")
    console.print(f"  [dim]名称:[/dim] {escape(project_name)}")
    console.print(f"  [dim]文件:[/dim] {len(doc.files)}  [dim]章节:[/dim] {doc.count_nodes()}")


@app.command(name="list")
def list_projects() -> None:
    """List all projects."""
    _init_storage()
    projects = get_all_projects()

    if not projects:
        console.print("[yellow]暂无项目[/yellow]")
        console.print("  使用: bid import-project <解析结果.json>")
        return

    console.print(f"\n[bold]项目列表 ({len(projects)}):[/bold]\n")
    for project in projects:
        color = STATUS_COLORS.get(project.status, "white")
        console.print(f"  [bold]{project.project_id}[/bold]")
        console.print(f"    [dim]名称:[/dim] {escape(project.project_name)}")
        console.print(f"    [dim]状态:[/dim] [{color}]{project.status}[/{color}]")
        console.print()


@app.command()
def show(
    project_id: str = typer.Argument(..., help="Project ID or unique prefix"),
    mode: str | None = typer.Option(None, help="Label mode: directory or format"),
    content: bool = typer.Option(False, "--content", "-c", help="Print template text"),
) -> None:
    """Show a project's normalized outline as a tree."""
    store = _init_storage()
    resolved_id = _resolve_project_id_or_exit(project_id)

    try:
        doc = load_outline(resolved_id, store, _resolve_mode(mode))  # type: ignore[arg-type]
    except ReviewError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(_render_outline(doc, show_content=content))

    nodes = [node for _, _, node in iter_nodes(doc)]
    templated = sum(1 for node in nodes if node.content_format.strip())
    console.print(
        f"\n[dim]文件:[/dim] {len(doc.files)}  [dim]章节:[/dim] {len(nodes)}"
        f"  [dim]含正文模板:[/dim] {templated}"
    )


@app.command()
def export(
    project_id: str = typer.Argument(..., help="Project ID or unique prefix"),
    fmt: str = typer.Option("json", "--format", "-f", help="json or yaml"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file"),
    mode: str | None = typer.Option(None, help="Label mode: directory or format"),
) -> None:
    """Export a project's normalized outline."""
    if fmt not in ("json", "yaml"):
        console.print(f"[red]✗ 不支持的格式: {fmt}[/red]")
        raise typer.Exit(code=1)

    store = _init_storage()
    resolved_id = _resolve_project_id_or_exit(project_id)

    try:
        doc = load_outline(resolved_id, store, _resolve_mode(mode))  # type: ignore[arg-type]
    except ReviewError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    if output is None:
        if fmt == "yaml":
            typer.echo(dump_outline_yaml(doc))
        else:
            typer.echo(json.dumps(doc.to_dict(), indent=2, ensure_ascii=False))
        return

    if fmt == "yaml":
        write_outline_yaml(doc, output)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(doc.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    console.print(f"[green]✓ 已导出: {output}[/green]")


@app.command(name="apply-yaml")
def apply_yaml(
    project_id: str = typer.Argument(..., help="Project ID or unique prefix"),
    yaml_file: Path = typer.Argument(..., help="Reviewed outline YAML"),
    mode: str | None = typer.Option(None, help="Label mode: directory or format"),
) -> None:
    """Replace a project's outline with a reviewed YAML file."""
    resolved_mode = _resolve_mode(mode)
    try:
        reviewed = read_outline_yaml(yaml_file, resolved_mode, strict=True)  # type: ignore[arg-type]
    except (FileNotFoundError, OutlineYamlError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    except yaml.YAMLError as e:
        console.print(f"[red]✗ YAML 解析失败: {e}[/red]")
        raise typer.Exit(code=1)

    def _replace(session: EditingSession) -> str:
        session.replace_document(reviewed)
        return f"已应用 YAML: {len(reviewed.files)} 个文件，{reviewed.count_nodes()} 个章节"

    _edit_outline(project_id, _replace, resolved_mode)


@app.command(name="add-section")
def add_section(
    project_id: str = typer.Argument(..., help="Project ID or unique prefix"),
    title: str = typer.Option(..., "--title", "-t", help="Section title"),
    description: str = typer.Option(DEFAULT_DESCRIPTION, "--description", "-d"),
    file_index: int = typer.Option(0, "--file", help="File index"),
    parent: str | None = typer.Option(None, "--parent", "-p", help="Parent path, e.g. 0.1"),
) -> None:
    """Add a section under a parent node, or a root chapter if no parent."""
    node = OutlineNode(title=title, description=description)
    parent_path = _parse_path_or_exit(parent) if parent is not None else None

    def _add(session: EditingSession) -> str:
        if parent_path is None:
            _, path = session.add_root_node(file_index, node)
        else:
            _, path = session.add_child(file_index, parent_path, node)
        return f"已添加章节 {format_path(path)}: {title}"

    _edit_outline(project_id, _add)


@app.command(name="remove-section")
def remove_section(
    project_id: str = typer.Argument(..., help="Project ID or unique prefix"),
    path: str = typer.Option(..., "--path", "-p", help="Section path, e.g. 0.1"),
    file_index: int = typer.Option(0, "--file", help="File index"),
) -> None:
    """Remove a section and everything beneath it.

    The last root chapter of a file is kept.
    """
    node_path = _parse_path_or_exit(path)

    def _remove(session: EditingSession) -> str:
        get_node(session.current, file_index, node_path)
        if len(node_path) == 1 and len(session.current.files[file_index].items) == 1:
            return "每个文件至少需要保留一个章节，未删除"
        session.remove_node(file_index, node_path)
        return f"已删除章节 {format_path(node_path)}"

    _edit_outline(project_id, _remove)


@app.command(name="set-field")
def set_field(
    project_id: str = typer.Argument(..., help="Project ID or unique prefix"),
    path: str = typer.Option(..., "--path", "-p", help="Section path, e.g. 0.1"),
    field: str = typer.Option(..., "--field", help="title, description or contentFormat"),
    value: str = typer.Option(..., "--value", "-v"),
    file_index: int = typer.Option(0, "--file", help="File index"),
) -> None:
    """Set one field of a section."""
    node_path = _parse_path_or_exit(path)

    def _set(session: EditingSession) -> str:
        try:
            session.set_field(file_index, node_path, field, value)  # type: ignore[arg-type]
        except ValueError as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(code=1)
        return f"已更新 {format_path(node_path)} 的 {field}"

    _edit_outline(project_id, _set)


@app.command(name="add-file")
def add_file(
    project_id: str = typer.Argument(..., help="Project ID or unique prefix"),
    name: str = typer.Option(..., "--name", "-n", help="File name"),
) -> None:
    """Add a submission file with one placeholder chapter."""

    def _add(session: EditingSession) -> str:
        session.add_file(name)
        return f"已添加文件: {name}"

    _edit_outline(project_id, _add)


@app.command(name="remove-file")
def remove_file(
    project_id: str = typer.Argument(..., help="Project ID or unique prefix"),
    file_index: int = typer.Option(..., "--file", help="File index"),
) -> None:
    """Remove a submission file. The last remaining file is kept."""

    def _remove(session: EditingSession) -> str:
        before = session.current
        after = session.remove_file(file_index)
        if after is before:
            return "至少需要保留一个文件，未删除"
        return f"已删除文件 {file_index}"

    _edit_outline(project_id, _remove)


@app.command(name="rename-file")
def rename_file(
    project_id: str = typer.Argument(..., help="Project ID or unique prefix"),
    file_index: int = typer.Option(..., "--file", help="File index"),
    name: str = typer.Option(..., "--name", "-n", help="New file name"),
) -> None:
    """Rename a submission file."""

    def _rename(session: EditingSession) -> str:
        session.rename_file(file_index, name)
        return f"文件 {file_index} 已重命名为 {name}"

    _edit_outline(project_id, _rename)


@app.command()
def confirm(
    project_id: str = typer.Argument(..., help="Project ID or unique prefix"),
) -> None:
    """Confirm the review: normalize, save and mark the project completed."""
    store = _init_storage()
    resolved_id = _resolve_project_id_or_exit(project_id)

    try:
        doc = load_outline(resolved_id, store, _resolve_mode(None))  # type: ignore[arg-type]
    except ReviewError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    store.save(resolved_id, doc)
    update_status(resolved_id, "completed")
    console.print(f"[green]✓ 项目 {resolved_id} 已完成核对[/green]")


@app.command()
def delete(
    project_id: str = typer.Argument(..., help="Project ID or unique prefix"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a project and its outline."""
    _init_storage()
    resolved_id = _resolve_project_id_or_exit(project_id)

    if not yes and not typer.confirm(f"确定删除项目 {resolved_id}?"):
        console.print("[yellow]已取消[/yellow]")
        raise typer.Exit(code=0)

    delete_project(resolved_id)
    console.print(f"[green]✓ 已删除项目 {resolved_id}[/green]")


if __name__ == "__main__":
    app()
