"""
Application stylesheet for light and dark mode theming.
"""


def get_application_stylesheet(is_dark: bool) -> str:
    """Return the QSS stylesheet shared by the console and chooser windows.

    Applied once on the QApplication so both windows inherit the theme.
    The chooser's path line is tinted through its ``path_state`` property
    (``"ok"`` or ``"error"``).
    """
    # --- Palette definition (Slate & Charcoal) ---
    accent_blue = "#7AA2FF" if is_dark else "#4A67AD"
    path_green = "#81C784" if is_dark else "#388E3C"
    danger_red = "#E57373" if is_dark else "#C62828"
    bg_window = "#1A1A1E" if is_dark else "#F8F9FA"
    bg_widget = "#252529" if is_dark else "#FFFFFF"
    alt_row = "#2C2C30" if is_dark else "#F3F4F6"
    text_main = "#E1E1E6" if is_dark else "#333333"
    text_sec = "#8E8E93" if is_dark else "#636366"
    border = "#2C2C2C" if is_dark else "#E0E0E0"
    hover_bg = "#3A3A3C" if is_dark else "#F0F0F0"
    pressed_bg = "#2C2C2E" if is_dark else "#E0E0E0"
    disabled_text = "#636366" if is_dark else "#8E8E93"

    return f"""
        QWidget {{
            background-color: {bg_window};
            color: {text_main};
            font-family: "SF Pro", "SF Compact", "Helvetica Neue", sans-serif;
            font-size: 13px;
        }}

        QLabel {{
            background-color: transparent;
        }}

        QLabel#secondary_label {{
            color: {text_sec};
            font-size: 11px;
        }}

        QLabel#dialog_status {{
            color: {text_sec};
            font-size: 11px;
        }}

        /* ========== Chooser ========== */
        QLabel#chooser_title {{
            font-size: 16px;
            font-weight: 700;
        }}
        QLabel#chooser_path {{
            font-family: "Menlo", monospace;
            font-size: 12px;
            color: {path_green};
        }}
        QLabel#chooser_path[path_state="error"] {{
            color: {danger_red};
        }}

        QListWidget {{
            background-color: {bg_widget};
            alternate-background-color: {alt_row};
            border: 1px solid {border};
            border-radius: 6px;
        }}
        QListWidget::item {{
            padding: 4px 6px;
        }}
        QListWidget::item:selected {{
            background-color: {accent_blue};
            color: white;
        }}

        /* ========== Inputs ========== */
        QLineEdit, QTextEdit {{
            background-color: {bg_widget};
            color: {text_main};
            border: 1px solid {border};
            border-radius: 6px;
            padding: 6px;
            selection-background-color: {accent_blue};
            selection-color: white;
        }}
        QLineEdit:focus, QTextEdit:focus {{
            border-color: {accent_blue};
        }}

        /* ========== Buttons ========== */
        QPushButton {{
            background-color: {bg_widget};
            border: 1px solid {border};
            border-radius: 6px;
            padding: 6px 14px;
            font-weight: 500;
        }}
        QPushButton:hover {{
            background-color: {hover_bg};
        }}
        QPushButton:pressed {{
            background-color: {pressed_bg};
        }}
        QPushButton:disabled {{
            color: {disabled_text};
        }}
    """
