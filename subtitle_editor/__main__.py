"""Package entry point for ``python -m subtitle_editor``.

WHY: Users run ``python -m subtitle_editor words.json`` for batch output,
or ``python -m subtitle_editor --gui`` for the desktop editor.

HOW: Checks sys.argv for the ``--gui`` flag. If present, launches the
Tkinter editor. Otherwise, delegates to the CLI's main() function.
"""

import sys

if __name__ == "__main__":
    if "--gui" in sys.argv:
        from subtitle_editor.gui import main as gui_main
        gui_main()
    else:
        from subtitle_editor.cli import main
        main()
