# --- File: main.py (Bootstrap) ---
import os
import sys
from PySide6.QtWidgets import QApplication

from ui.main_window import MainWindow


def main():
    """Application entry point. The workspace root is argv[1] or the current directory."""
    root_path = sys.argv[1] if len(sys.argv) > 1 else os.getcwd()
    print(f"[MAIN] 🚀 Starting Code Combiner for {root_path}")
    app = QApplication(sys.argv[:1])

    window = MainWindow(root_path)
    window.resize(480, 640)
    window.show()

    print("[MAIN] 🔄 Starting event loop...")
    sys.exit(app.exec())


if __name__ == '__main__':
    main()
