"""Tkinter desktop editor for subtitle cues.

WHY: Editors need to see cues against the playback clock and fix them by
hand: drag a cue along the timeline, pull its edges, move the caption up
or down in the frame, widen it, scale its text, or retype it. The GUI
hosts the same controllers the HTTP API and tests drive, so everything it
does is also reachable without a display.

HOW: A single SubtitleEditorApp class builds the window: a toolbar (open,
aspect ratio, generate, edit/cancel/save, play/pause, export), a preview
canvas showing the active cue with karaoke colouring, a side panel
listing the cues (active row highlighted) above a form for the selected
cue's start, end and text, and a timeline canvas. Media playback is
simulated by MediaClock (no decoding); the frame loop is a PlaybackTicker
driven by TkFrameScheduler over .after().
Window-level <B1-Motion> / <ButtonRelease-1> bindings feed one PointerBus
so a drag keeps tracking after the pointer leaves the canvas.

RULES:
- Python 3.9 compatible — no match/case, no X | Y unions at runtime
- Pointer events use root coordinates; drag controllers only need deltas
- Canvas hit tests use widget-local coordinates
- Drags and inline text editing only while an edit session is open
- The selected-cue form is read-only outside an edit session
- Generating cues is refused while editing (store raises RuntimeError)
- All widgets are touched from the main thread only
"""

from __future__ import annotations

import dataclasses
import logging
import time
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox, ttk
from tkinter import font as tkfont
from typing import Any, Callable, List, Optional, Tuple

from subtitle_editor.config import DEFAULT_ASPECT, LOG_LEVEL, policy_for
from subtitle_editor.core.assembler import assemble_cues
from subtitle_editor.core.ir import AspectRatio, Cue, Word
from subtitle_editor.core.layout import effective_font_size
from subtitle_editor.core.playback import (
    ActiveCueTracker,
    FrameScheduler,
    PlaybackTicker,
    WordState,
    word_states,
)
from subtitle_editor.core.store import CueStore
from subtitle_editor.core.words import WordListError, loads_words, sanitize_words
from subtitle_editor.editing import (
    InlineTextEditor,
    PointerBus,
    PointerEvent,
    SpatialDragController,
    TimelineDragController,
)
from subtitle_editor.editing.spatial import cue_box, hit_test_box
from subtitle_editor.editing.timeline import apply_timing_edit, time_to_px
from subtitle_editor.formatters import FORMATTERS
from subtitle_editor.formatters.base import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_WINDOW_TITLE = "Subtitle Editor"
_WINDOW_MIN_WIDTH = 1040
_WINDOW_MIN_HEIGHT = 620
_PAD = 8

_FRAME_MS = 16
_TIMELINE_HEIGHT = 64
_PREVIEW_SIZES = {
    AspectRatio.LANDSCAPE: (480, 270),
    AspectRatio.PORTRAIT: (216, 384),
}

# Pixels per em at a preview height of 1 px
_EM_PER_HEIGHT = 1.0 / 40.0

_COLOURS = {
    WordState.SPOKEN: "#ffffff",
    WordState.CURRENT: "#ffd400",
    WordState.UPCOMING: "#8c8c8c",
}
_CUE_FILL = "#3a6ea5"
_CUE_SELECTED_FILL = "#e08a1e"
_ACTIVE_ROW_BG = "#c9d9f2"
_CUE_LIST_HEIGHT = 10
_PLAYHEAD = "#d11"
_SHIFT_MASK = 0x0001


# ---------------------------------------------------------------------------
# Playback plumbing
# ---------------------------------------------------------------------------

class TkFrameScheduler(FrameScheduler):
    """Frame scheduler backed by Tk's .after() timer."""

    def __init__(self, root: tk.Misc, interval_ms: int = _FRAME_MS) -> None:
        self._root = root
        self._interval_ms = interval_ms

    def request_frame(self, callback: Callable[[], None]) -> Any:
        return self._root.after(self._interval_ms, callback)

    def cancel_frame(self, handle: Any) -> None:
        self._root.after_cancel(handle)


class MediaClock:
    """Wall-clock stand-in for a media element.

    WHY: The editor is about cue timing, not decoding. A clock that plays,
    pauses, seeks and stops at the end is all the controllers need.

    RULES:
    - time() never exceeds duration
    - Reaching the end pauses the clock (ended becomes True)
    """

    def __init__(self, duration: float = 0.0) -> None:
        self.duration = duration
        self._position = 0.0
        self._started_at: Optional[float] = None

    @property
    def playing(self) -> bool:
        return self._started_at is not None

    @property
    def ended(self) -> bool:
        return self.duration > 0 and self.time() >= self.duration

    def time(self) -> float:
        position = self._position
        if self._started_at is not None:
            position += time.monotonic() - self._started_at
        return min(position, self.duration)

    def play(self) -> None:
        if self.playing:
            return
        if self.ended:
            self._position = 0.0
        self._started_at = time.monotonic()

    def pause(self) -> None:
        self._position = self.time()
        self._started_at = None

    def seek(self, position: float) -> None:
        self._position = max(0.0, min(position, self.duration))
        if self._started_at is not None:
            self._started_at = time.monotonic()


# ---------------------------------------------------------------------------
# Main GUI Application
# ---------------------------------------------------------------------------

class SubtitleEditorApp:
    """Main tkinter application for assembling and editing cues.

    RULES:
    - self._store is the single source of truth for cues
    - Store changes redraw the timeline and preview
    - Active-cue changes (from ticks, seeks, or edits) redraw the preview
    - The ticker only runs while the clock is playing
    """

    def __init__(self, root: tk.Tk) -> None:
        self._root = root
        self._root.title(_WINDOW_TITLE)
        self._root.minsize(_WINDOW_MIN_WIDTH, _WINDOW_MIN_HEIGHT)

        # State
        self._input_path: Optional[Path] = None
        self._words: List[Word] = []
        self._aspect = DEFAULT_ASPECT
        self._text_entry: Optional[ttk.Entry] = None

        # Core objects
        self._store = CueStore()
        self._bus = PointerBus()
        self._clock = MediaClock()
        self._tracker = ActiveCueTracker(self._store)
        self._ticker = PlaybackTicker(
            TkFrameScheduler(self._root), self._clock.time, self._on_tick
        )

        # Build UI
        self._build_ui()

        self._timeline = TimelineDragController(
            self._store, self._bus, 0.0, self._timeline_canvas.winfo_width
        )
        self._spatial = SpatialDragController(
            self._store, self._bus, self._measure_preview, self._aspect
        )

        self._store.subscribe(self._on_store_change)
        self._tracker.subscribe(self._on_active_change)

        self._root.bind_all("<B1-Motion>", self._on_pointer_move, add="+")
        self._root.bind_all("<ButtonRelease-1>", self._on_pointer_up, add="+")
        self._root.protocol("WM_DELETE_WINDOW", self._on_close)

        self._set_idle_state()

    # ------------------------------------------------------------------
    # UI Construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        """Build the main window layout."""
        main = ttk.Frame(self._root, padding=_PAD)
        main.pack(fill=tk.BOTH, expand=True)

        # --- Word list ---
        file_frame = ttk.LabelFrame(main, text="Word List", padding=_PAD)
        file_frame.pack(fill=tk.X, pady=(0, _PAD))

        self._file_label = ttk.Label(file_frame, text="No file selected", foreground="gray")
        self._file_label.pack(side=tk.LEFT, fill=tk.X, expand=True)

        self._browse_btn = ttk.Button(file_frame, text="Open...", command=self._browse_file)
        self._browse_btn.pack(side=tk.RIGHT)

        # --- Assembly ---
        settings_frame = ttk.LabelFrame(main, text="Assembly", padding=_PAD)
        settings_frame.pack(fill=tk.X, pady=(0, _PAD))

        ttk.Label(settings_frame, text="Aspect ratio:").pack(side=tk.LEFT)
        self._aspect_var = tk.StringVar(value=self._aspect.value)
        self._aspect_buttons: List[ttk.Radiobutton] = []
        for aspect, label in ((AspectRatio.LANDSCAPE, "16:9"), (AspectRatio.PORTRAIT, "9:16")):
            btn = ttk.Radiobutton(
                settings_frame,
                text=label,
                value=aspect.value,
                variable=self._aspect_var,
                command=self._change_aspect,
            )
            btn.pack(side=tk.LEFT, padx=(4, 0))
            self._aspect_buttons.append(btn)

        self._generate_btn = ttk.Button(
            settings_frame, text="Generate", command=self._generate_cues
        )
        self._generate_btn.pack(side=tk.RIGHT)

        body = ttk.Frame(main)
        body.pack(fill=tk.BOTH, expand=True, pady=(0, _PAD))

        # --- Preview ---
        preview_frame = ttk.LabelFrame(body, text="Preview", padding=_PAD)
        preview_frame.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        self._build_cue_panel(body)

        width, height = _PREVIEW_SIZES[self._aspect]
        self._preview_canvas = tk.Canvas(
            preview_frame, width=width, height=height, background="black",
            highlightthickness=0,
        )
        self._preview_canvas.pack()
        self._preview_canvas.bind("<ButtonPress-1>", self._on_preview_press)
        self._preview_canvas.bind("<Double-Button-1>", self._on_preview_double_click)
        self._preview_canvas.bind("<Configure>", lambda _e: self._draw_preview())

        # --- Transport ---
        transport = ttk.Frame(main)
        transport.pack(fill=tk.X, pady=(0, 4))

        self._play_btn = ttk.Button(transport, text="Play", command=self._toggle_play)
        self._play_btn.pack(side=tk.LEFT)
        self._time_label = ttk.Label(transport, text="0.00 / 0.00")
        self._time_label.pack(side=tk.LEFT, padx=(_PAD, 0))

        # --- Timeline ---
        self._timeline_canvas = tk.Canvas(
            main, height=_TIMELINE_HEIGHT, background="#1e1e1e", highlightthickness=0
        )
        self._timeline_canvas.pack(fill=tk.X, pady=(0, _PAD))
        self._timeline_canvas.bind("<ButtonPress-1>", self._on_timeline_press)
        self._timeline_canvas.bind("<Configure>", lambda _e: self._draw_timeline())

        # --- Edit / Export ---
        actions = ttk.Frame(main)
        actions.pack(fill=tk.X)

        self._edit_btn = ttk.Button(actions, text="Edit", command=self._begin_edit)
        self._edit_btn.pack(side=tk.LEFT)
        self._cancel_btn = ttk.Button(actions, text="Cancel", command=self._cancel_edit)
        self._cancel_btn.pack(side=tk.LEFT, padx=(4, 0))
        self._save_btn = ttk.Button(actions, text="Save", command=self._save_edit)
        self._save_btn.pack(side=tk.LEFT, padx=(4, 0))

        self._export_btns: List[ttk.Button] = []
        for key in sorted(FORMATTERS.keys(), reverse=True):
            btn = ttk.Button(
                actions,
                text="Export {}".format(key.upper()),
                command=lambda k=key: self._export(k),
            )
            btn.pack(side=tk.RIGHT, padx=(4, 0))
            self._export_btns.append(btn)

    def _build_cue_panel(self, parent: ttk.Frame) -> None:
        """Cue list (active cue highlighted) and the selected-cue form."""
        side = ttk.Frame(parent)
        side.pack(side=tk.RIGHT, fill=tk.Y, padx=(_PAD, 0))

        list_frame = ttk.LabelFrame(side, text="Cues", padding=_PAD)
        list_frame.pack(fill=tk.BOTH, expand=True, pady=(0, _PAD))

        self._cue_list = ttk.Treeview(
            list_frame, columns=("start", "end", "text"), show="headings",
            selectmode="browse", height=_CUE_LIST_HEIGHT,
        )
        for column, heading, width in (("start", "Start", 90), ("end", "End", 90), ("text", "Text", 200)):
            self._cue_list.heading(column, text=heading)
            self._cue_list.column(column, width=width, stretch=(column == "text"))
        self._cue_list.tag_configure("active", background=_ACTIVE_ROW_BG)
        scrollbar = ttk.Scrollbar(list_frame, orient=tk.VERTICAL, command=self._cue_list.yview)
        self._cue_list.configure(yscrollcommand=scrollbar.set)
        self._cue_list.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        scrollbar.pack(side=tk.RIGHT, fill=tk.Y)
        self._cue_list.bind("<<TreeviewSelect>>", self._on_cue_list_select)

        form = ttk.LabelFrame(side, text="Selected Cue", padding=_PAD)
        form.pack(fill=tk.X)

        self._form_start_var = tk.StringVar()
        self._form_end_var = tk.StringVar()
        self._form_text_var = tk.StringVar()
        self._form_entries: List[ttk.Entry] = []
        for row, (label, var) in enumerate((
            ("Start:", self._form_start_var),
            ("End:", self._form_end_var),
            ("Text:", self._form_text_var),
        )):
            ttk.Label(form, text=label).grid(row=row, column=0, sticky=tk.W, pady=2)
            entry = ttk.Entry(form, textvariable=var, width=28)
            entry.grid(row=row, column=1, sticky=tk.EW, padx=(4, 0), pady=2)
            entry.bind("<KeyPress-Return>", lambda _e: self._apply_selected_form())
            self._form_entries.append(entry)
        form.columnconfigure(1, weight=1)

        self._form_apply_btn = ttk.Button(form, text="Apply", command=self._apply_selected_form)
        self._form_apply_btn.grid(row=3, column=1, sticky=tk.E, pady=(4, 0))

    # ------------------------------------------------------------------
    # State management
    # ------------------------------------------------------------------

    def _set_idle_state(self) -> None:
        """Not editing: playback and generation allowed, drags disabled."""
        has_cues = len(self._store) > 0
        self._browse_btn.configure(state=tk.NORMAL)
        self._generate_btn.configure(state=tk.NORMAL if self._words else tk.DISABLED)
        for btn in self._aspect_buttons:
            btn.configure(state=tk.NORMAL)
        self._edit_btn.configure(state=tk.NORMAL if has_cues else tk.DISABLED)
        self._cancel_btn.configure(state=tk.DISABLED)
        self._save_btn.configure(state=tk.DISABLED)
        for btn in self._export_btns:
            btn.configure(state=tk.NORMAL if has_cues else tk.DISABLED)
        self._refresh_selected_form()

    def _set_editing_state(self) -> None:
        self._browse_btn.configure(state=tk.DISABLED)
        self._generate_btn.configure(state=tk.DISABLED)
        for btn in self._aspect_buttons:
            btn.configure(state=tk.DISABLED)
        self._edit_btn.configure(state=tk.DISABLED)
        self._cancel_btn.configure(state=tk.NORMAL)
        self._save_btn.configure(state=tk.NORMAL)
        for btn in self._export_btns:
            btn.configure(state=tk.DISABLED)
        self._refresh_selected_form()

    # ------------------------------------------------------------------
    # Word list and assembly
    # ------------------------------------------------------------------

    def _browse_file(self) -> None:
        path = filedialog.askopenfilename(
            title="Select Word List",
            filetypes=[("JSON word lists", "*.json"), ("All files", "*.*")],
        )
        if path:
            self._load_words(Path(path))

    def _load_words(self, path: Path) -> None:
        try:
            words = loads_words(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, WordListError) as exc:
            messagebox.showerror("Cannot Open Word List", str(exc))
            return

        self._input_path = path
        self._words = words
        self._file_label.configure(text=path.name, foreground="")

        duration = max((w.end for w in words), default=0.0)
        self._clock.pause()
        self._ticker.stop()
        self._clock.duration = duration
        self._clock.seek(0.0)
        self._timeline.set_total_duration(duration)
        self._generate_cues()

    def _change_aspect(self) -> None:
        self._aspect = AspectRatio.parse(self._aspect_var.get())
        self._spatial.aspect = self._aspect
        width, height = _PREVIEW_SIZES[self._aspect]
        self._preview_canvas.configure(width=width, height=height)
        if self._words:
            self._generate_cues()

    def _generate_cues(self) -> None:
        cues = assemble_cues(sanitize_words(self._words), policy_for(self._aspect))
        try:
            self._store.replace_all(cues)
        except RuntimeError as exc:
            messagebox.showwarning("Editing", str(exc))
            return
        self._timeline.selected_cue_id = None
        self._sync_list_selection()
        self._tracker.seek(self._clock.time())
        self._set_idle_state()

    # ------------------------------------------------------------------
    # Edit session
    # ------------------------------------------------------------------

    def _begin_edit(self) -> None:
        self._store.begin_edit()
        self._spatial.set_editing(True)
        self._set_editing_state()
        self._draw_preview()

    def _cancel_edit(self) -> None:
        self._close_text_entry()
        self._spatial.set_editing(False)
        self._timeline.end()
        self._store.cancel_edit()
        self._set_idle_state()
        self._draw_preview()

    def _save_edit(self) -> None:
        if self._spatial.text_editor.active and self._text_entry is not None:
            self._spatial.text_editor.draft = self._text_entry.get()
            self._spatial.text_editor.commit()
        self._close_text_entry()
        self._spatial.set_editing(False)
        self._timeline.end()
        self._store.commit_edit()
        self._set_idle_state()
        self._draw_preview()

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def _toggle_play(self) -> None:
        if self._clock.playing:
            self._clock.pause()
            self._ticker.stop()
            self._play_btn.configure(text="Play")
        else:
            self._clock.play()
            self._ticker.start()
            self._play_btn.configure(text="Pause")

    def _on_tick(self, position: float) -> None:
        if self._clock.ended:
            self._clock.pause()
            self._ticker.stop()
            self._play_btn.configure(text="Play")
        self._tracker.tick(position)
        self._draw_playhead()
        # Karaoke states change within a cue, so repaint every frame
        self._draw_preview()

    def _seek(self, position: float) -> None:
        self._clock.seek(position)
        self._tracker.seek(self._clock.time())
        self._draw_playhead()
        self._draw_preview()

    # ------------------------------------------------------------------
    # Pointer routing
    # ------------------------------------------------------------------

    @staticmethod
    def _pointer(event: tk.Event) -> PointerEvent:
        return PointerEvent(
            x=float(event.x_root),
            y=float(event.y_root),
            shift=bool(event.state & _SHIFT_MASK),
        )

    def _on_pointer_move(self, event: tk.Event) -> None:
        self._bus.dispatch_move(self._pointer(event))

    def _on_pointer_up(self, event: tk.Event) -> None:
        self._bus.dispatch_up(self._pointer(event))

    def _on_timeline_press(self, event: tk.Event) -> None:
        hit = self._timeline.hit_test(event.x)
        if hit is not None and self._store.is_editing:
            cue_id, mode = hit
            self._timeline.begin(self._pointer(event), cue_id, mode)
            self._on_selection_change()
            return
        self._timeline.selected_cue_id = hit[0] if hit is not None else None
        self._seek(self._timeline.time_at(event.x))
        self._on_selection_change()

    def _on_preview_press(self, event: tk.Event) -> None:
        cue = self._tracker.active
        if cue is None or self._spatial.text_editor.active:
            return
        mode = hit_test_box(event.x, event.y, self._active_box(cue))
        if mode is not None:
            self._spatial.begin(self._pointer(event), cue.id, mode)

    def _on_preview_double_click(self, event: tk.Event) -> None:
        cue = self._tracker.active
        if cue is None or hit_test_box(event.x, event.y, self._active_box(cue)) is None:
            return
        if self._spatial.double_click(cue.id):
            self._open_text_entry(cue)

    # ------------------------------------------------------------------
    # Inline text edit
    # ------------------------------------------------------------------

    def _open_text_entry(self, cue: Cue) -> None:
        left, top, right, bottom = self._active_box(cue)
        editor: InlineTextEditor = self._spatial.text_editor

        entry = ttk.Entry(self._preview_canvas)
        entry.insert(0, editor.draft)
        entry.bind("<KeyPress-Return>", self._on_entry_key)
        entry.bind("<KeyPress-Escape>", self._on_entry_key)
        entry.bind("<FocusOut>", self._on_entry_blur)
        self._preview_canvas.create_window(
            (left + right) / 2.0, (top + bottom) / 2.0,
            window=entry, width=max(right - left, 40), tags=("entry",),
        )
        entry.focus_set()
        entry.select_range(0, tk.END)
        self._text_entry = entry

    def _on_entry_key(self, event: tk.Event) -> str:
        editor = self._spatial.text_editor
        if self._text_entry is not None:
            editor.draft = self._text_entry.get()
        if editor.handle_key(event.keysym, bool(event.state & _SHIFT_MASK)):
            self._close_text_entry()
            self._draw_preview()
        return "break"

    def _on_entry_blur(self, _event: tk.Event) -> None:
        editor = self._spatial.text_editor
        if editor.active and self._text_entry is not None:
            editor.draft = self._text_entry.get()
            editor.commit()
        self._close_text_entry()
        self._draw_preview()

    def _close_text_entry(self) -> None:
        entry, self._text_entry = self._text_entry, None
        self._preview_canvas.delete("entry")
        if entry is not None:
            entry.destroy()

    # ------------------------------------------------------------------
    # Store / tracker listeners
    # ------------------------------------------------------------------

    def _on_store_change(self, _store: CueStore) -> None:
        self._draw_timeline()
        self._draw_preview()
        self._refresh_cue_list()
        self._refresh_selected_form()

    def _on_active_change(self, cue: Optional[Cue]) -> None:
        self._draw_preview()
        self._highlight_active_row(cue)

    # ------------------------------------------------------------------
    # Cue list and selected-cue form
    # ------------------------------------------------------------------

    def _refresh_cue_list(self) -> None:
        tree = self._cue_list
        tree.delete(*tree.get_children())
        active = self._tracker.active
        for cue in self._store.cues:
            tags = ("active",) if active is not None and cue.id == active.id else ()
            tree.insert(
                "", tk.END, iid=str(cue.id), tags=tags,
                values=(format_timestamp(cue.start), format_timestamp(cue.end), cue.text),
            )
        self._sync_list_selection()

    def _highlight_active_row(self, cue: Optional[Cue]) -> None:
        tree = self._cue_list
        for iid in tree.get_children():
            tree.item(iid, tags=())
        if cue is not None and tree.exists(str(cue.id)):
            tree.item(str(cue.id), tags=("active",))
            tree.see(str(cue.id))

    def _sync_list_selection(self) -> None:
        selected = self._timeline.selected_cue_id
        iid = str(selected) if selected is not None else None
        current = self._cue_list.selection()
        if iid is not None and self._cue_list.exists(iid):
            if current != (iid,):
                self._cue_list.selection_set(iid)
        elif current:
            self._cue_list.selection_remove(*current)

    def _on_cue_list_select(self, _event: tk.Event) -> None:
        selection = self._cue_list.selection()
        if not selection:
            return
        cue_id = int(selection[0])
        if cue_id == self._timeline.selected_cue_id:
            return
        self._timeline.selected_cue_id = cue_id
        cue = self._store.get(cue_id)
        if cue is not None:
            self._seek(cue.start)
        self._on_selection_change()

    def _on_selection_change(self) -> None:
        self._draw_timeline()
        self._sync_list_selection()
        self._refresh_selected_form()

    def _refresh_selected_form(self) -> None:
        """Show the selected cue in the form; editable only while editing."""
        selected = self._timeline.selected_cue_id
        cue = self._store.get(selected) if selected is not None else None
        if cue is None:
            for var in (self._form_start_var, self._form_end_var, self._form_text_var):
                var.set("")
        else:
            self._form_start_var.set(format_timestamp(cue.start))
            self._form_end_var.set(format_timestamp(cue.end))
            self._form_text_var.set(cue.text)

        state = tk.NORMAL if cue is not None and self._store.is_editing else tk.DISABLED
        for entry in self._form_entries:
            entry.configure(state=state)
        self._form_apply_btn.configure(state=state)

    def _apply_selected_form(self) -> None:
        """Parse the typed timestamps and write the selected cue back.

        RULES:
        - Only edges whose text changed are applied, so a lone start edit
          behaves like a start-edge drag
        - Timing goes through apply_timing_edit (same rules as PATCH)
        - Blank text keeps the current text
        """
        selected = self._timeline.selected_cue_id
        cue = self._store.get(selected) if selected is not None else None
        if cue is None or not self._store.is_editing:
            return

        try:
            start = self._typed_time(self._form_start_var.get(), cue.start)
            end = self._typed_time(self._form_end_var.get(), cue.end)
        except ValueError as exc:
            messagebox.showerror("Invalid Time", str(exc))
            return

        new_start, new_end = apply_timing_edit(cue, start, end, self._clock.duration)
        text = self._form_text_var.get().strip() or cue.text
        self._store.update(dataclasses.replace(cue, start=new_start, end=new_end, text=text))

    @staticmethod
    def _typed_time(text: str, current: float) -> Optional[float]:
        """Parsed value, or None when the field still shows the current time."""
        if text.strip() == format_timestamp(current):
            return None
        return parse_timestamp(text)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _measure_preview(self) -> Tuple[float, float]:
        return (
            float(self._preview_canvas.winfo_width()),
            float(self._preview_canvas.winfo_height()),
        )

    def _font_px(self, cue: Cue) -> int:
        _, height = self._measure_preview()
        return max(6, int(round(effective_font_size(cue) * height * _EM_PER_HEIGHT)))

    def _active_box(self, cue: Cue) -> Tuple[float, float, float, float]:
        return cue_box(cue, self._aspect, self._measure_preview(), self._font_px(cue) * 1.6)

    def _draw_preview(self) -> None:
        canvas = self._preview_canvas
        canvas.delete("cue")
        cue = self._tracker.active
        if cue is None or self._text_entry is not None:
            return

        left, top, right, bottom = self._active_box(cue)
        font = tkfont.Font(family="Helvetica", size=-self._font_px(cue), weight="bold")
        center_y = (top + bottom) / 2.0

        states = word_states(cue.words, self._clock.time())
        if states:
            space = font.measure(" ")
            total = sum(font.measure(w.text) for w, _ in states) + space * (len(states) - 1)
            x = (left + right - total) / 2.0
            for word, state in states:
                canvas.create_text(
                    x, center_y, text=word.text, anchor=tk.W, font=font,
                    fill=_COLOURS[state], tags=("cue",),
                )
                x += font.measure(word.text) + space
        else:
            canvas.create_text(
                (left + right) / 2.0, center_y, text=cue.text, font=font,
                fill=_COLOURS[WordState.SPOKEN], width=right - left,
                justify=tk.CENTER, tags=("cue",),
            )

        if self._spatial.editing_enabled:
            canvas.create_rectangle(left, top, right, bottom, outline="#4aa3ff", dash=(3, 2), tags=("cue",))
            r = 3
            for hx, hy in ((left, top), (right, top), (left, bottom), (right, bottom),
                           (left, center_y), (right, center_y)):
                canvas.create_rectangle(
                    hx - r, hy - r, hx + r, hy + r, fill="#4aa3ff", outline="", tags=("cue",)
                )

    def _draw_timeline(self) -> None:
        canvas = self._timeline_canvas
        canvas.delete("block")
        for cue in self._store.cues:
            left, width = self._timeline.cue_span_px(cue)
            selected = cue.id == self._timeline.selected_cue_id
            canvas.create_rectangle(
                left, 8, left + width, _TIMELINE_HEIGHT - 8,
                fill=_CUE_SELECTED_FILL if selected else _CUE_FILL,
                outline="#000", tags=("block",),
            )
            if width > 24:
                canvas.create_text(
                    left + 4, _TIMELINE_HEIGHT / 2.0, text=cue.text, anchor=tk.W,
                    fill="white", width=width - 8, tags=("block",),
                )
        self._draw_playhead()

    def _draw_playhead(self) -> None:
        canvas = self._timeline_canvas
        canvas.delete("playhead")
        position = self._clock.time()
        x = time_to_px(position, canvas.winfo_width(), self._clock.duration)
        canvas.create_line(x, 0, x, _TIMELINE_HEIGHT, fill=_PLAYHEAD, width=2, tags=("playhead",))
        self._time_label.configure(text="{:.2f} / {:.2f}".format(position, self._clock.duration))

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def _export(self, key: str) -> None:
        output = FORMATTERS[key]().format(self._store.cues)[0]
        stem = self._input_path.stem if self._input_path is not None else "subtitles"
        path = filedialog.asksaveasfilename(
            title="Export {}".format(key.upper()),
            defaultextension=output.suffix,
            initialfile="{}{}".format(stem, output.suffix),
            initialdir=str(self._input_path.parent) if self._input_path is not None else None,
        )
        if not path:
            return
        try:
            Path(path).write_text(output.content, encoding="utf-8")
        except OSError as exc:
            messagebox.showerror("Export Failed", str(exc))
            return
        logger.info("Exported %d cues to %s", len(self._store), path)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def _on_close(self) -> None:
        self._ticker.stop()
        self._timeline.close()
        self._spatial.close()
        self._tracker.close()
        self._root.destroy()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Launch the Tkinter editor.

    RULES:
    - This function blocks until the window is closed
    - Must be called from the main thread
    """
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    root = tk.Tk()
    SubtitleEditorApp(root)
    root.mainloop()


if __name__ == "__main__":
    main()
