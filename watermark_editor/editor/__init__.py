"""Editor UI package.

Import widgets directly from their modules:
    - `from watermark_editor.editor.ui_editor import WatermarkEditorWindow`
"""

from .controller import EditorController
from .state import EditorState

__all__ = ["EditorController", "EditorState"]
