"""
GUI for the SheetNest desktop application.
Loads a folder of artwork, nests it on a preset sheet and renders the result.
"""

import tkinter as tk
from tkinter import ttk, filedialog, messagebox
from pathlib import Path
import threading
import logging
from typing import List, Optional

from .filler import SmartFillResult
from .geometry import Sheet
from .layer import LayerSpec, load_artwork_layers
from .logger import setup_logging, generate_log_filename, generate_tiff_filename
from .packer import AutoNestResult, SheetPacker
from .presets import (DEFAULT_PADDING, DEFAULT_PRINT_TYPE, DEFAULT_SHEET_HEIGHT,
                      SHEET_PRESETS, PrintType, PrintTypeRules, describe_sheet, sheet_for)
from .renderer import SheetRenderer
from .validation import LayoutValidationError


class SheetNestGUI:
    """Main GUI application for SheetNest."""

    def __init__(self, root: tk.Tk):
        """Initialize the GUI application."""
        self.root = root
        self.root.title("SheetNest")
        self.root.geometry("760x520")

        setup_logging()
        self.logger = logging.getLogger(__name__)

        self.renderer = SheetRenderer()
        self.layers: List[LayerSpec] = []
        self.sheet: Optional[Sheet] = None
        self.padding = DEFAULT_PADDING
        self.nest_result: Optional[AutoNestResult] = None
        self.fill_result: Optional[SmartFillResult] = None

        self._create_widgets()
        self.logger.info("SheetNest GUI initialized")

    def _create_widgets(self):
        """Create all GUI widgets."""
        main_frame = ttk.Frame(self.root, padding="10")
        main_frame.grid(row=0, column=0, sticky=(tk.W, tk.E, tk.N, tk.S))
        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)
        main_frame.columnconfigure(1, weight=1)

        row = 0

        ttk.Label(main_frame, text="Project Name:").grid(row=row, column=0, sticky=tk.W, pady=2)
        self.project_name_var = tk.StringVar(value="gang_sheet")
        ttk.Entry(main_frame, textvariable=self.project_name_var, width=40).grid(
            row=row, column=1, sticky=(tk.W, tk.E), pady=2)
        row += 1

        ttk.Label(main_frame, text="Sheet:").grid(row=row, column=0, sticky=tk.W, pady=2)
        sheet_frame = ttk.Frame(main_frame)
        sheet_frame.grid(row=row, column=1, sticky=(tk.W, tk.E), pady=2)

        self.print_type_var = tk.StringVar(value=DEFAULT_PRINT_TYPE.value)
        type_combo = ttk.Combobox(sheet_frame, textvariable=self.print_type_var,
                                  values=[t.value for t in PrintType], state="readonly", width=12)
        type_combo.pack(side=tk.LEFT)
        type_combo.bind('<<ComboboxSelected>>', self._on_print_type_change)

        ttk.Label(sheet_frame, text="Height:").pack(side=tk.LEFT, padx=(10, 0))
        self.height_var = tk.StringVar(value=str(DEFAULT_SHEET_HEIGHT))
        self.height_combo = ttk.Combobox(sheet_frame, textvariable=self.height_var, state="readonly", width=6)
        self.height_combo.pack(side=tk.LEFT, padx=2)
        self.height_combo.bind('<<ComboboxSelected>>', self._on_height_change)
        self.sheet_desc_var = tk.StringVar()
        ttk.Label(sheet_frame, textvariable=self.sheet_desc_var, foreground="gray").pack(side=tk.LEFT, padx=(10, 0))
        row += 1

        ttk.Label(main_frame, text="Spacing:").grid(row=row, column=0, sticky=tk.W, pady=2)
        spacing_frame = ttk.Frame(main_frame)
        spacing_frame.grid(row=row, column=1, sticky=(tk.W, tk.E), pady=2)
        self.padding_var = tk.StringVar(value=str(DEFAULT_PADDING))
        ttk.Label(spacing_frame, text="Padding:").pack(side=tk.LEFT)
        ttk.Entry(spacing_frame, textvariable=self.padding_var, width=8).pack(side=tk.LEFT, padx=2)
        ttk.Label(spacing_frame, text="in").pack(side=tk.LEFT)
        self.dpi_var = tk.StringVar(value="300")
        ttk.Label(spacing_frame, text="Artwork DPI:").pack(side=tk.LEFT, padx=(10, 0))
        ttk.Entry(spacing_frame, textvariable=self.dpi_var, width=6).pack(side=tk.LEFT, padx=2)
        row += 1

        ttk.Label(main_frame, text="Artwork Folder:").grid(row=row, column=0, sticky=tk.W, pady=2)
        folder_frame = ttk.Frame(main_frame)
        folder_frame.grid(row=row, column=1, sticky=(tk.W, tk.E), pady=2)
        folder_frame.columnconfigure(0, weight=1)
        self.folder_path_var = tk.StringVar()
        ttk.Entry(folder_frame, textvariable=self.folder_path_var).grid(row=0, column=0, sticky=(tk.W, tk.E), padx=(0, 5))
        ttk.Button(folder_frame, text="Browse...", command=self._browse_folder).grid(row=0, column=1)
        row += 1

        ttk.Label(main_frame, text="Output Location:").grid(row=row, column=0, sticky=tk.W, pady=2)
        output_frame = ttk.Frame(main_frame)
        output_frame.grid(row=row, column=1, sticky=(tk.W, tk.E), pady=2)
        output_frame.columnconfigure(0, weight=1)
        self.output_path_var = tk.StringVar()
        ttk.Entry(output_frame, textvariable=self.output_path_var).grid(row=0, column=0, sticky=(tk.W, tk.E), padx=(0, 5))
        ttk.Button(output_frame, text="Browse...", command=self._browse_output).grid(row=0, column=1)
        row += 1

        ttk.Separator(main_frame, orient='horizontal').grid(row=row, column=0, columnspan=2, sticky=(tk.W, tk.E), pady=10)
        row += 1

        ttk.Label(main_frame, text="Artwork:").grid(row=row, column=0, sticky=tk.W, pady=2)
        self.file_info_var = tk.StringVar(value="No folder selected")
        ttk.Label(main_frame, textvariable=self.file_info_var, foreground="blue").grid(row=row, column=1, sticky=tk.W, pady=2)
        row += 1

        ttk.Label(main_frame, text="Layout:").grid(row=row, column=0, sticky=tk.W, pady=2)
        self.layout_info_var = tk.StringVar(value="Not calculated")
        ttk.Label(main_frame, textvariable=self.layout_info_var, foreground="green").grid(row=row, column=1, sticky=tk.W, pady=2)
        row += 1

        ttk.Label(main_frame, text="Smart Fill:").grid(row=row, column=0, sticky=tk.W, pady=2)
        self.fill_info_var = tk.StringVar(value="Not run")
        ttk.Label(main_frame, textvariable=self.fill_info_var, foreground="green").grid(row=row, column=1, sticky=tk.W, pady=2)
        row += 1

        ttk.Separator(main_frame, orient='horizontal').grid(row=row, column=0, columnspan=2, sticky=(tk.W, tk.E), pady=10)
        row += 1

        button_frame = ttk.Frame(main_frame)
        button_frame.grid(row=row, column=0, columnspan=2, pady=10)
        ttk.Button(button_frame, text="Auto-Nest", command=self._auto_nest).pack(side=tk.LEFT, padx=5)
        self.fill_button = ttk.Button(button_frame, text="Smart Fill", command=self._smart_fill, state=tk.DISABLED)
        self.fill_button.pack(side=tk.LEFT, padx=5)
        self.preview_button = ttk.Button(button_frame, text="Generate Preview", command=self._generate_preview, state=tk.DISABLED)
        self.preview_button.pack(side=tk.LEFT, padx=5)
        self.print_button = ttk.Button(button_frame, text="Generate Print TIFF", command=self._generate_print, state=tk.DISABLED)
        self.print_button.pack(side=tk.LEFT, padx=5)
        row += 1

        self.progress_var = tk.StringVar(value="Ready")
        ttk.Label(main_frame, textvariable=self.progress_var).grid(row=row, column=0, columnspan=2, pady=5)
        row += 1
        self.progress_bar = ttk.Progressbar(main_frame, mode='indeterminate')
        self.progress_bar.grid(row=row, column=0, columnspan=2, sticky=(tk.W, tk.E), pady=5)

        self._on_print_type_change()

    def _on_print_type_change(self, event=None):
        """Refresh the offered heights for the selected print type."""
        preset = SHEET_PRESETS[PrintType(self.print_type_var.get())]
        heights = [str(h) for h in preset.heights]
        self.height_combo.config(values=heights)
        if self.height_var.get() not in heights:
            self.height_var.set(str(DEFAULT_SHEET_HEIGHT) if str(DEFAULT_SHEET_HEIGHT) in heights else heights[0])
        self._update_sheet_description()
        self._reset_layout()

    def _on_height_change(self, event=None):
        self._update_sheet_description()
        self._reset_layout()

    def _update_sheet_description(self):
        print_type = PrintType(self.print_type_var.get())
        self.sheet_desc_var.set(describe_sheet(print_type, int(self.height_var.get())))

    def _browse_folder(self):
        folder = filedialog.askdirectory(title="Select Artwork Folder")
        if folder:
            self.folder_path_var.set(folder)
            self._load_folder()

    def _browse_output(self):
        folder = filedialog.askdirectory(title="Select Output Location")
        if folder:
            self.output_path_var.set(folder)

    def _load_folder(self):
        """Read artwork sizes from the selected folder."""
        try:
            dpi = int(self.dpi_var.get())
            self.layers = load_artwork_layers(Path(self.folder_path_var.get()), dpi)
        except (ValueError, OSError) as e:
            self.layers = []
            self.file_info_var.set(f"Error reading folder: {e}")
            self.logger.error(f"Error reading artwork folder: {e}")
            return

        self._reset_layout()
        if not self.layers:
            self.file_info_var.set("No artwork files found")
            return
        total_area = sum(layer.area for layer in self.layers)
        self.file_info_var.set(f"{len(self.layers)} files, {total_area:.1f} sq in of artwork")

    def _reset_layout(self):
        self.nest_result = None
        self.fill_result = None
        self.layout_info_var.set("Not calculated")
        self.fill_info_var.set("Not run")
        self.fill_button.config(state=tk.DISABLED)
        self.preview_button.config(state=tk.DISABLED)
        self.print_button.config(state=tk.DISABLED)

    def _auto_nest(self):
        """Validate inputs and nest the loaded artwork."""
        if not self.layers:
            messagebox.showerror("Error", "Please select a folder containing artwork")
            return
        try:
            self.sheet = sheet_for(PrintType(self.print_type_var.get()), int(self.height_var.get()))
            self.padding = float(self.padding_var.get())
            packer = SheetPacker(self.sheet, self.padding)
            self.nest_result = packer.auto_nest(self.layers)
        except (LayoutValidationError, ValueError) as e:
            messagebox.showerror("Invalid Layout", str(e))
            return

        self.fill_result = None
        self.fill_info_var.set("Not run")
        text = (f"{len(self.nest_result.placements)} placed, efficiency {self.nest_result.efficiency_percent}%, "
                f"waste {self.nest_result.wasted_area:.1f} sq in")
        self.layout_info_var.set(text)
        self.fill_button.config(state=tk.NORMAL)
        self.preview_button.config(state=tk.NORMAL)
        self.print_button.config(state=tk.NORMAL)

        if self.nest_result.oversized:
            names = "\n".join(o.id for o in self.nest_result.oversized[:10])
            messagebox.showwarning("Oversized Artwork",
                                   f"These files are too large for the sheet and overlap other artwork:\n{names}")

    def _smart_fill(self):
        """Fill the remaining sheet with copies of the smallest artwork."""
        if self.nest_result is None:
            messagebox.showerror("Error", "Please run Auto-Nest first")
            return
        packer = SheetPacker(self.sheet, self.padding)
        self.fill_result = packer.smart_fill(self.layers)
        self.fill_info_var.set(f"{self.fill_result.total_added} copies of {self.fill_result.template_id or '-'}, "
                               f"coverage {self.fill_result.coverage_percent}%")

    def _generate_preview(self):
        output_dir = Path(self.output_path_var.get())
        if not output_dir.is_dir():
            messagebox.showerror("Error", "Please select a valid output location")
            return
        project_name = self.project_name_var.get().strip() or "gang_sheet"
        preview_path = output_dir / generate_tiff_filename(project_name, preview=True)

        self._start_progress("Generating preview...")
        threading.Thread(target=self._preview_worker, args=(preview_path,), daemon=True).start()

    def _preview_worker(self, preview_path: Path):
        try:
            self.renderer.generate_preview(self.sheet, self.layers, self.nest_result, preview_path,
                                           fill_result=self.fill_result)
            self.root.after(0, lambda: self._worker_complete("Preview Complete", f"Preview saved: {preview_path}"))
        except Exception as e:
            self.logger.error(f"Preview generation failed: {e}", exc_info=True)
            error = str(e)
            self.root.after(0, lambda: self._worker_error("Preview Error", error))

    def _generate_print(self):
        output_dir = Path(self.output_path_var.get())
        if not output_dir.is_dir():
            messagebox.showerror("Error", "Please select a valid output location")
            return
        if not messagebox.askyesno("Generate Print TIFF",
                                   "Render the sheet at full resolution?\n\nThis may take several minutes for long sheets."):
            return
        project_name = self.project_name_var.get().strip() or "gang_sheet"
        tiff_path = output_dir / generate_tiff_filename(project_name)
        log_path = output_dir / generate_log_filename(project_name)
        rules = SHEET_PRESETS[PrintType(self.print_type_var.get())].rules

        self._start_progress("Generating print TIFF...")
        threading.Thread(target=self._print_worker, args=(tiff_path, log_path, project_name, rules),
                         daemon=True).start()

    def _print_worker(self, tiff_path: Path, log_path: Path, project_name: str, rules: PrintTypeRules):
        try:
            placed = self.renderer.generate_print_tiff(
                self.sheet, self.layers, self.nest_result, tiff_path, log_path, project_name,
                padding=self.padding,
                fill_result=self.fill_result,
                dpi=rules.min_dpi,
                mirror=rules.mirror
            )
            self.root.after(0, lambda: self._worker_complete(
                "Print TIFF Complete", f"{placed} artworks placed\n\nOutput: {tiff_path}\nLog: {log_path}"))
        except Exception as e:
            error = str(e)
            self.root.after(0, lambda: self._worker_error("Print TIFF Error", error))

    def _worker_complete(self, title: str, message: str):
        self._stop_progress()
        messagebox.showinfo(title, message)

    def _worker_error(self, title: str, error: str):
        self._stop_progress()
        messagebox.showerror(title, f"Failed: {error}")

    def _start_progress(self, message: str):
        self.progress_var.set(message)
        self.progress_bar.start()

    def _stop_progress(self):
        self.progress_bar.stop()
        self.progress_var.set("Ready")
