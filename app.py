"""
NiceGUI page for the product relationship graph editor.

Loads the graph through GraphEditorController, renders it with ui.echart and
offers the editing controls of the console page:
- click a node, then another node, to connect them (similar, 0.5)
- click an edge to edit its weight/type or delete it
- move the selected node by entering a new position
- Save Graph submits the complete graph; Discard returns to the last saved state
"""

import logging

from nicegui import ui

from product_graph.auth import configure_session_manager
from product_graph.config import get_settings
from product_graph.edit import GraphEditorController, EditorState
from product_graph.errors import (
    AuthenticationError,
    GraphModelError,
    NetworkError,
    ProductGraphError,
    SaveInProgressError,
    ValidationError,
)
from product_graph.graph_model import GraphModel
from product_graph.graph_viz import build_echarts_option
from product_graph.models import EdgeType
from product_graph.storage import create_store

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

STATE_BADGES = {
    EditorState.IDLE: ('Not loaded', 'grey'),
    EditorState.LOADING: ('Loading...', 'grey'),
    EditorState.LOAD_FAILED: ('Load failed', 'negative'),
    EditorState.CLEAN: ('Saved', 'positive'),
    EditorState.DIRTY: ('Unsaved changes', 'warning'),
    EditorState.SAVING: ('Saving...', 'primary'),
}


def describe_error(e: Exception) -> str:
    """Operator-facing message for an editor error."""
    if isinstance(e, SaveInProgressError):
        return 'A save is already running, please wait.'
    if isinstance(e, NetworkError):
        return f'Network problem, your edits are kept. Try again. ({e})'
    if isinstance(e, AuthenticationError):
        return 'Your session has expired. Log in again; your edits are kept.'
    if isinstance(e, ValidationError):
        detail = f' {e.details}' if e.details else ''
        return f'The graph was rejected: {e}.{detail}'
    return str(e)


@ui.page('/')
def graph_page():
    settings = get_settings()
    session = configure_session_manager(settings.admin_token)
    store = create_store(settings, session=session)
    model = GraphModel(
        allow_self_loops=settings.allow_self_loops,
        allow_parallel_edges=settings.allow_parallel_edges,
    )
    controller = GraphEditorController(store, model=model)

    state = {
        'chart': None,
        'badge': None,
        'selected_node_id': None,
        'selection_label': None,
    }

    def refresh_chart():
        if state['chart'] is None:
            return
        option = build_echarts_option(controller.snapshot())
        state['chart'].options.clear()
        state['chart'].options.update(option)
        state['chart'].update()

    def refresh_badge(editor_state: EditorState):
        if state['badge'] is None:
            return
        text, color = STATE_BADGES[editor_state]
        state['badge'].set_text(text)
        state['badge'].props(f'color={color}')

    controller.on_change(refresh_badge)

    def select_node(node_id):
        state['selected_node_id'] = node_id
        if state['selection_label'] is not None:
            state['selection_label'].set_text(f'Selected: {node_id}' if node_id else 'No node selected')

    async def do_load():
        try:
            await controller.load()
        except ProductGraphError as e:
            ui.notify(f'Failed to load product graph: {describe_error(e)}', type='negative')
            return
        select_node(None)
        refresh_chart()

    async def do_save():
        try:
            await controller.save()
        except ProductGraphError as e:
            ui.notify(f'Failed to save graph: {describe_error(e)}', type='negative')
            return
        refresh_chart()
        ui.notify('Graph saved successfully', type='positive')

    def do_discard():
        try:
            controller.discard()
        except ProductGraphError as e:
            ui.notify(describe_error(e), type='warning')
            return
        select_node(None)
        refresh_chart()

    def show_edge_dialog(edge_id: str):
        try:
            edge = controller.model.get_edge(edge_id)
        except GraphModelError as e:
            ui.notify(str(e), type='warning')
            return

        with ui.dialog() as dialog, ui.card().classes('w-96'):
            ui.label('Edit Edge').classes('text-lg font-bold')
            ui.label(f'{edge.source} → {edge.target}').classes('text-sm text-gray-500')
            weight_input = ui.number('Weight (0-1)', value=edge.weight, min=0, max=1, step=0.1).classes('w-full')
            type_select = ui.select(
                {t.value: t.value.capitalize() for t in EdgeType},
                value=edge.type.value,
                label='Type',
            ).classes('w-full')

            def save_edge():
                try:
                    controller.update_edge(edge_id, weight=weight_input.value, type=type_select.value)
                except GraphModelError as e:
                    ui.notify(str(e), type='negative')
                    return
                dialog.close()
                refresh_chart()
                ui.notify('Edge updated successfully', type='positive')

            def delete_edge():
                try:
                    controller.remove_edge(edge_id)
                except GraphModelError as e:
                    ui.notify(str(e), type='negative')
                    return
                dialog.close()
                refresh_chart()
                ui.notify('Edge deleted successfully', type='positive')

            with ui.row().classes('w-full justify-end gap-2'):
                ui.button('Delete Edge', on_click=delete_edge).props('color=negative')
                ui.button('Cancel', on_click=dialog.close).props('flat')
                ui.button('Save Changes', on_click=save_edge).props('color=primary')
        dialog.open()

    def handle_point_click(e):
        if e.data_type == 'edge':
            edge_id = (e.data or {}).get('id')
            if edge_id:
                show_edge_dialog(edge_id)
            return

        node_id = (e.data or {}).get('id')
        if not node_id:
            return
        source = state['selected_node_id']
        if source is None or source == node_id:
            select_node(node_id)
            return
        try:
            edge = controller.connect_nodes(source, node_id)
        except GraphModelError as err:
            ui.notify(str(err), type='warning')
            select_node(node_id)
            return
        select_node(None)
        refresh_chart()
        ui.notify(f'Connected as {edge.display_label}', type='positive')

    def move_selected(x, y):
        node_id = state['selected_node_id']
        if not node_id:
            ui.notify('Select a node first', type='warning')
            return
        try:
            controller.move_node(node_id, {'x': x, 'y': y})
        except GraphModelError as e:
            ui.notify(str(e), type='negative')
            return
        refresh_chart()

    # --- Layout ---

    with ui.row().classes('w-full items-center justify-between p-4'):
        with ui.column().classes('gap-0'):
            ui.label('Product Graph').classes('text-3xl font-bold')
            ui.label('Visualize and edit product relationships').classes('text-gray-500')
        with ui.row().classes('items-center gap-2'):
            state['badge'] = ui.badge('Not loaded').props('color=grey')
            ui.button('Reload', icon='refresh', on_click=do_load).props('flat')
            ui.button('Discard', icon='undo', on_click=do_discard).props('flat')
            ui.button('Save Graph', icon='save', on_click=do_save).props('color=primary')

    with ui.card().classes('w-full'):
        state['chart'] = ui.echart(build_echarts_option(controller.snapshot()), on_point_click=handle_point_click)
        state['chart'].classes('w-full h-[600px]')
        with ui.row().classes('items-center gap-2'):
            state['selection_label'] = ui.label('No node selected').classes('text-sm')
            x_input = ui.number('x', value=0).props('dense outlined').classes('w-24')
            y_input = ui.number('y', value=0).props('dense outlined').classes('w-24')
            ui.button('Move', on_click=lambda: move_selected(x_input.value, y_input.value)).props('flat dense')
        ui.label(
            'Click two nodes to connect them. Click an edge to edit weight and type.'
        ).classes('mt-4 text-sm text-gray-500')

    ui.timer(0.1, do_load, once=True)


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='Product Graph',
        port=8081,
        reload=True,
    )
