import gradio as gr
from functools import partial

from fhir_flattener.constants import DEFAULT_ID_COLUMN, DEFAULT_SEPARATOR
from fhir_flattener.schema_utils import build_tree_from_keys
from fhir_flattener.handlers_single import (
    MAPPING_HEADERS,
    crack_table_handler,
    export_table_handler,
    handle_resource_change,
    load_bundles_with_summary,
    preview_crack_handler,
    update_mapping_table_and_clear_preview,
)
from fhir_flattener.handlers_reshape import (
    handle_table_change,
    melt_handler,
    remove_indices_handler,
    select_columns_by_prefix_handler,
)

# --- UI Definition ---
with gr.Blocks(title="FHIR Flattener") as demo:
    gr.Markdown("# FHIR Flattener")
    gr.Markdown("Upload FHIR XML bundles, flatten one resource type into a table, then melt or clean multi-valued cells.")

    # State
    bundles_state = gr.State()
    discovered_paths_state = gr.State(value=[])
    selected_paths_state = gr.State(value=[])
    cracked_table_state = gr.State()
    reshaped_table_state = gr.State()

    with gr.Tab("Crack Bundles"):
        with gr.Row():
            # Left Panel: Input & Paths
            with gr.Column(scale=1):
                gr.Markdown("### 1. Import")
                file_input = gr.File(label="Upload XML Bundles", file_types=[".xml"], file_count="multiple")
                status_msg = gr.Textbox(label="Status", interactive=False)
                resource_selector = gr.Dropdown(
                    label="Resource Type",
                    choices=[],
                    value=None,
                    allow_custom_value=True,
                    interactive=True,
                )
                resource_count = gr.Textbox(label="Resource Count", interactive=False)

                gr.Markdown("### 2. Select Columns")
                gr.Markdown("Leave empty to extract every available path.")

                @gr.render(inputs=[discovered_paths_state], triggers=[discovered_paths_state.change])
                def render_paths(paths):
                    if not paths:
                        gr.Markdown("No paths found.")
                        return

                    tree = build_tree_from_keys(paths)

                    def on_change(path, is_selected, current_selected):
                        current_selected = list(current_selected or [])
                        if is_selected:
                            if path not in current_selected:
                                current_selected.append(path)
                        else:
                            if path in current_selected:
                                current_selected.remove(path)
                        return current_selected

                    def recursive_ui(node, label="root"):
                        if isinstance(node, dict):
                            if "__self__" in node:
                                full_path = node["__self__"]
                                cb = gr.Checkbox(label=f"{label} (value)", value=False)
                                cb.change(fn=partial(on_change, full_path), inputs=[cb, selected_paths_state], outputs=[selected_paths_state])

                            with gr.Accordion(label, open=False):
                                for k, v in node.items():
                                    if k == "__self__":
                                        continue
                                    recursive_ui(v, k)
                        else:
                            full_path = node
                            cb = gr.Checkbox(label=label, value=False)
                            cb.change(fn=partial(on_change, full_path), inputs=[cb, selected_paths_state], outputs=[selected_paths_state])

                    for k, v in tree.items():
                        recursive_ui(v, k)

            # Right Panel: Table Builder
            with gr.Column(scale=1):
                gr.Markdown("### 3. Style")
                separator_input = gr.Textbox(label="Separator", value=DEFAULT_SEPARATOR)
                brackets_input = gr.Textbox(
                    label="Brackets",
                    value="[ ]",
                    info="Opening and closing bracket separated by a space. Leave empty for no indices.",
                )
                drop_empty_input = gr.Checkbox(label="Drop empty columns", value=False)

                gr.Markdown("### 4. Column Mapping")
                gr.Markdown("Rename output columns if needed.")
                mapping_table = gr.Dataframe(
                    headers=MAPPING_HEADERS,
                    datatype=["str", "str"],
                    col_count=(2, "fixed"),
                    interactive=True,
                    label="Column Mapping",
                )

                gr.Markdown("### 5. Crack & Export")
                output_format = gr.Radio(choices=["CSV", "JSON"], value="CSV", label="Output Format")
                output_filename = gr.Textbox(label="Output Filename (optional)", placeholder="output")
                load_preview_btn = gr.Button("Load Preview")
                crack_btn = gr.Button("Crack", variant="primary")
                export_btn = gr.Button("Export Table")
                download_output = gr.File(label="Download Result")
                crack_preview = gr.JSON(label="Preview")

        file_input.upload(
            fn=load_bundles_with_summary,
            inputs=[file_input],
            outputs=[
                bundles_state,
                discovered_paths_state,
                selected_paths_state,
                status_msg,
                resource_selector,
                mapping_table,
                crack_preview,
                resource_count,
            ],
        )

        resource_selector.change(
            fn=handle_resource_change,
            inputs=[bundles_state, resource_selector],
            outputs=[discovered_paths_state, selected_paths_state, resource_count, crack_preview],
        )

        selected_paths_state.change(
            fn=update_mapping_table_and_clear_preview,
            inputs=[selected_paths_state],
            outputs=[mapping_table, crack_preview],
        )

        crack_inputs = [bundles_state, resource_selector, mapping_table, separator_input, brackets_input, drop_empty_input]

        load_preview_btn.click(
            fn=preview_crack_handler,
            inputs=crack_inputs,
            outputs=[crack_preview, status_msg],
        )

        crack_btn.click(
            fn=crack_table_handler,
            inputs=crack_inputs,
            outputs=[cracked_table_state, status_msg, crack_preview],
        )

        export_btn.click(
            fn=export_table_handler,
            inputs=[cracked_table_state, output_format, output_filename],
            outputs=[download_output, status_msg],
        )

    with gr.Tab("Reshape"):
        gr.Markdown("### 1. Select columns")
        with gr.Row():
            prefix_input = gr.Textbox(label="Column Prefix", placeholder="name")
            prefix_btn = gr.Button("Select by Prefix")
        column_selector = gr.Dropdown(
            label="Columns",
            choices=[],
            value=[],
            multiselect=True,
            interactive=False,
            allow_custom_value=False,
            info="Melt only columns that belong to the same repeating element.",
        )

        gr.Markdown("### 2. Configure")
        with gr.Row():
            reshape_brackets = gr.Textbox(label="Brackets", value="[ ]")
            reshape_separator = gr.Textbox(label="Separator", value=DEFAULT_SEPARATOR)
            id_column_input = gr.Textbox(label="Id Column", value=DEFAULT_ID_COLUMN)
            keep_all_input = gr.Checkbox(label="Keep all columns", value=False)

        gr.Markdown("### 3. Reshape & export")
        with gr.Row():
            melt_btn = gr.Button("Melt", variant="primary")
            rm_indices_btn = gr.Button("Remove Indices")
            reset_btn = gr.Button("Reset to Cracked Table")
        reshape_status = gr.Textbox(label="Reshape Status", interactive=False)
        reshape_format = gr.Radio(choices=["CSV", "JSON"], value="CSV", label="Output Format")
        reshape_filename = gr.Textbox(label="Output Filename (optional)", placeholder="reshaped")
        reshape_export_btn = gr.Button("Export Reshaped Table")
        reshape_download = gr.File(label="Reshaped Result")
        reshape_preview = gr.JSON(label="Preview")

        cracked_table_state.change(
            fn=lambda table: table,
            inputs=[cracked_table_state],
            outputs=[reshaped_table_state],
        )

        reset_btn.click(
            fn=lambda table: table,
            inputs=[cracked_table_state],
            outputs=[reshaped_table_state],
        )

        reshaped_table_state.change(
            fn=handle_table_change,
            inputs=[reshaped_table_state],
            outputs=[column_selector, reshape_preview],
        )

        prefix_btn.click(
            fn=select_columns_by_prefix_handler,
            inputs=[reshaped_table_state, prefix_input, column_selector],
            outputs=[column_selector, reshape_status],
        )

        melt_btn.click(
            fn=melt_handler,
            inputs=[reshaped_table_state, column_selector, reshape_brackets, reshape_separator, id_column_input, keep_all_input],
            outputs=[reshaped_table_state, reshape_status, reshape_preview],
        )

        rm_indices_btn.click(
            fn=remove_indices_handler,
            inputs=[reshaped_table_state, reshape_brackets, column_selector],
            outputs=[reshaped_table_state, reshape_status, reshape_preview],
        )

        reshape_export_btn.click(
            fn=export_table_handler,
            inputs=[reshaped_table_state, reshape_format, reshape_filename],
            outputs=[reshape_download, reshape_status],
        )

if __name__ == "__main__":
    demo.launch()
