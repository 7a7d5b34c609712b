#!/usr/bin/env python3
"""
SheetNest - Desktop Application
Nests artwork onto DTF, UV DTF and sublimation gang sheets.
"""

import tkinter as tk

from sheetnest_core.gui import SheetNestGUI


def main():
    """Main entry point for SheetNest."""
    root = tk.Tk()
    app = SheetNestGUI(root)
    root.mainloop()


if __name__ == "__main__":
    main()
