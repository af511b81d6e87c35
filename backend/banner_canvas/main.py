"""Gradio web interface for the BannerCanvas editor."""

from __future__ import annotations

import atexit
import contextlib
import logging
import os
import sys
import tempfile
import traceback

from PIL import Image

from .engine import BannerCanvasEngine, create_engine
from .enums import Axis, RenderMode, TextAlign
from .exceptions import BannerCanvasError, ValidationError
from .interaction.controller import PointerEvent
from .logging_config import setup_logging
from .models import ImageLayer, TextLayer

logger = logging.getLogger("bannercanvas.main")

# Optional Gradio import
try:
    import gradio as gr

    HAS_GRADIO = True
except ImportError:
    HAS_GRADIO = False
    logger.error("Gradio not installed. Run: pip install gradio")

SCALE_SLIDER_RESET = 100

# Temp file management
_temp_files: list[str] = []


def _cleanup_temp_files() -> None:
    """Clean up temporary files."""
    for f in _temp_files:
        with contextlib.suppress(OSError):
            os.unlink(f)
    _temp_files.clear()


atexit.register(_cleanup_temp_files)


def layer_rows(engine: BannerCanvasEngine) -> list[dict]:
    """Layer list for the side panel, top of the stack first."""
    snapshot = engine.snapshot()
    rows = []
    for layer in reversed(snapshot.layers):
        row = {
            "id": layer.id,
            "type": layer.kind.value,
            "x": round(layer.x, 1),
            "y": round(layer.y, 1),
            "rotation": round(layer.rotation, 1),
            "selected": layer.id == snapshot.selected_id,
        }
        if isinstance(layer, TextLayer):
            row["content"] = layer.content
            row["font_size"] = layer.font_size
        else:
            row["size"] = f"{round(layer.width)}x{round(layer.height)}"
        rows.append(row)
    return rows


def scale_selected(engine: BannerCanvasEngine, percent: float) -> None:
    """Scale the selected layer to ``percent`` of its current size.

    The scale slider is relative and snaps back to ``SCALE_SLIDER_RESET``
    after every release, so repeated releases do not compound.
    """
    snapshot = engine.snapshot()
    layer = snapshot.get(snapshot.selected_id)
    if layer is None:
        raise ValidationError("Select a layer first")
    factor = (percent or SCALE_SLIDER_RESET) / 100
    if isinstance(layer, ImageLayer):
        changes = {"width": layer.width * factor, "height": layer.height * factor}
    else:
        changes = {"font_size": layer.font_size * factor}
    engine.update_layer(layer.id, changes)


def create_interface() -> object:
    """Create Gradio interface for the banner editor."""
    engine = create_engine()

    with gr.Blocks(
        title="BannerCanvas - Profile Banner Editor",
        theme=gr.themes.Soft(),
        css="""
        .gradio-container { max-width: 98% !important; }
        .gr-button { font-weight: bold !important; }
        """,
    ) as interface:
        gr.Markdown(
            """
        # BannerCanvas - Profile Banner Editor

        **Compose a 1584x396 banner and preview where the profile photo will sit.**

        1. **Upload** a background and any images
        2. **Add** text layers
        3. **Click** the preview to select a layer, then move, rotate or resize it
        4. **Export** the clean PNG

        ---
        """
        )

        preview = gr.Image(label="Canvas (click to select)", type="pil", interactive=False)

        with gr.Row():
            with gr.Column(scale=1):
                gr.Markdown("### Background & Images")
                background_input = gr.Image(label="Background", type="filepath")
                image_input = gr.Image(label="Add Image Layer", type="filepath")
                add_image_btn = gr.Button("Add Image")

                gr.Markdown("### Text")
                text_content = gr.Textbox(label="Text", value="Your headline")
                with gr.Row():
                    text_size = gr.Number(value=48, label="Font Size")
                    text_color = gr.ColorPicker(value="#ffffff", label="Color")
                    text_align = gr.Dropdown(
                        choices=[a.value for a in TextAlign], value=TextAlign.LEFT.value, label="Align"
                    )
                add_text_btn = gr.Button("Add Text", variant="primary")

            with gr.Column(scale=1):
                gr.Markdown("### Selected Layer")
                with gr.Row():
                    nudge_x = gr.Number(value=0, label="Move X")
                    nudge_y = gr.Number(value=0, label="Move Y")
                    move_btn = gr.Button("Move", size="sm")
                rotation = gr.Slider(-180, 180, value=0, step=1, label="Rotation")
                scale = gr.Slider(10, 400, value=SCALE_SLIDER_RESET, step=5, label="Scale %")
                with gr.Row():
                    center_h_btn = gr.Button("Center H", size="sm")
                    center_v_btn = gr.Button("Center V", size="sm")
                    forward_btn = gr.Button("Forward", size="sm")
                    backward_btn = gr.Button("Backward", size="sm")
                    delete_btn = gr.Button("Delete", size="sm", variant="stop")
                layers_json = gr.JSON(label="Layers")

            with gr.Column(scale=1):
                gr.Markdown("### Profile Preview")
                profile_input = gr.Image(label="Profile Photo", type="filepath")
                profile_x = gr.Slider(-400, 400, value=0, step=1, label="Offset X")
                profile_y = gr.Slider(-200, 200, value=0, step=1, label="Offset Y")
                profile_scale = gr.Slider(0.5, 5.0, value=1.0, step=0.05, label="Scale")
                safe_zones = gr.Checkbox(value=False, label="Show Safe Zones")

                gr.Markdown("### Export")
                export_btn = gr.Button("EXPORT PNG", variant="primary", size="lg")
                download = gr.File(label="Download")
                status = gr.Markdown("**Status:** Ready")

        async def refresh(message: str = "Ready") -> tuple:
            report = await engine.prepare()
            frame = engine.render(RenderMode.EDIT).image
            notes = "; ".join(report.warnings)
            text = f"**Status:** {message}" + (f" ({notes})" if notes else "")
            return frame, layer_rows(engine), text

        def _selected() -> str | None:
            return engine.snapshot().selected_id

        async def run(action, message: str) -> tuple:
            try:
                action()
            except BannerCanvasError as e:
                return await refresh(f"Error: {str(e)}")
            except Exception as e:
                traceback.print_exc()
                return await refresh(f"Unexpected error: {str(e)}")
            return await refresh(message)

        outputs = [preview, layers_json, status]

        async def on_background(path: str | None) -> tuple:
            try:
                await engine.replace_background(path)
            except BannerCanvasError as e:
                return await refresh(f"Error: {str(e)}")
            return await refresh("Background updated" if path else "Background cleared")

        background_input.change(on_background, inputs=[background_input], outputs=outputs)

        async def on_add_image(path: str | None) -> tuple:
            if not path:
                return await refresh("Please choose an image")
            with Image.open(path) as img:
                width, height = img.size
            # Fit into a third of the canvas height while keeping the aspect
            fit = min(1.0, engine.height / 3 / height)
            layer = ImageLayer(x=40, y=40, width=width * fit, height=height * fit, content=path)
            return await run(lambda: engine.add_layer(layer), "Image added")

        add_image_btn.click(on_add_image, inputs=[image_input], outputs=outputs)

        async def on_add_text(content: str, size: float, color: str, align: str) -> tuple:
            if not content:
                return await refresh("Please enter some text")
            layer = TextLayer(
                x=engine.width / 2 - 200,
                y=engine.height / 2 - size / 2,
                content=content,
                font_size=size or 48,
                color=color,
                text_align=TextAlign(align),
            )
            return await run(lambda: engine.add_layer(layer), "Text added")

        add_text_btn.click(
            on_add_text, inputs=[text_content, text_size, text_color, text_align], outputs=outputs
        )

        async def on_click(evt: gr.SelectData) -> tuple:
            x, y = evt.index
            event = PointerEvent(x=x, y=y)
            engine.pointer_down(event)
            engine.pointer_up(event)
            selected = _selected()
            return await refresh(f"Selected {selected}" if selected else "Nothing selected")

        preview.select(on_click, outputs=outputs)

        async def on_move(dx: float, dy: float) -> tuple:
            layer_id = _selected()
            if layer_id is None:
                return await refresh("Select a layer first")
            layer = engine.snapshot().get(layer_id)
            return await run(
                lambda: engine.update_layer(layer_id, x=layer.x + (dx or 0), y=layer.y + (dy or 0)), "Moved"
            )

        move_btn.click(on_move, inputs=[nudge_x, nudge_y], outputs=outputs)

        async def on_rotate(degrees: float) -> tuple:
            layer_id = _selected()
            if layer_id is None:
                return await refresh("Select a layer first")
            return await run(lambda: engine.update_layer(layer_id, rotation=degrees), "Rotated")

        rotation.release(on_rotate, inputs=[rotation], outputs=outputs)

        async def on_scale(percent: float) -> tuple:
            frame, rows, text = await run(lambda: scale_selected(engine, percent), "Resized")
            return frame, rows, text, SCALE_SLIDER_RESET

        scale.release(on_scale, inputs=[scale], outputs=outputs + [scale])

        def _on_selected(command, message: str):
            async def handler() -> tuple:
                layer_id = _selected()
                if layer_id is None:
                    return await refresh("Select a layer first")
                return await run(lambda: command(layer_id), message)

            return handler

        center_h_btn.click(
            _on_selected(lambda i: engine.center_layer(i, Axis.HORIZONTAL), "Centered"), outputs=outputs
        )
        center_v_btn.click(
            _on_selected(lambda i: engine.center_layer(i, Axis.VERTICAL), "Centered"), outputs=outputs
        )
        forward_btn.click(_on_selected(engine.bring_forward, "Brought forward"), outputs=outputs)
        backward_btn.click(_on_selected(engine.send_backward, "Sent backward"), outputs=outputs)
        delete_btn.click(_on_selected(engine.delete_layer, "Deleted"), outputs=outputs)

        async def on_profile(path: str | None) -> tuple:
            return await run(lambda: engine.set_profile_overlay(path), "Profile photo updated")

        profile_input.change(on_profile, inputs=[profile_input], outputs=outputs)

        async def on_profile_transform(x: float, y: float, s: float) -> tuple:
            return await run(
                lambda: engine.set_profile_transform({"x": x, "y": y, "scale": s}), "Profile moved"
            )

        for slider in (profile_x, profile_y, profile_scale):
            slider.release(
                on_profile_transform, inputs=[profile_x, profile_y, profile_scale], outputs=outputs
            )

        async def on_safe_zones(show: bool) -> tuple:
            engine.show_safe_zones = show
            return await refresh("Safe zones on" if show else "Safe zones off")

        safe_zones.change(on_safe_zones, inputs=[safe_zones], outputs=[preview, layers_json, status])

        async def export_banner() -> tuple:
            try:
                _cleanup_temp_files()
                await engine.prepare()
                exported = engine.export_image("PNG")

                with tempfile.NamedTemporaryFile(delete=False, suffix=".png") as tmp:
                    tmp.write(exported.data)
                    path = tmp.name
                    _temp_files.append(path)

                return path, f"**Status:** Exported {exported.width}x{exported.height} PNG"
            except BannerCanvasError as e:
                return None, f"**Status:** Error: {str(e)}"
            except Exception as e:
                traceback.print_exc()
                return None, f"**Status:** Unexpected error: {str(e)}"

        export_btn.click(export_banner, outputs=[download, status])

        interface.load(refresh, outputs=outputs)

    return interface


def main() -> None:
    """Main entry point."""
    setup_logging(os.environ.get("BANNERCANVAS_LOG_LEVEL", "INFO"))

    logger.info("=" * 70)
    logger.info("BANNERCANVAS - Profile Banner Editor")
    logger.info("=" * 70)

    if not HAS_GRADIO:
        logger.error("Gradio is required. Run: pip install gradio")
        sys.exit(1)

    logger.info("Starting web interface...")

    try:
        interface = create_interface()
        interface.launch(
            server_name="0.0.0.0",
            server_port=7860,
            share=False,
            inbrowser=True,
            show_error=True,
        )
    except Exception as e:
        logger.error("Failed to start: %s", e)
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
