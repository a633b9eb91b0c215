"""
OS Algorithms Visualizer — Memory, Paging, CPU, Disk & Deadlock

This application provides an interactive simulation and visualization of
classic Operating System algorithms:
    - Buddy allocation (split / coalesce) and slab caches
    - Clock (second-chance) page replacement and thrashing
    - Round robin CPU scheduling
    - Disk-head scheduling (FCFS, SSTF, SCAN, C-SCAN, LOOK, C-LOOK)
    - Banker's algorithm for deadlock avoidance

Built with Streamlit for the web interface and Plotly for visualizations.
The algorithms themselves live in engine.py, paging.py, slab.py,
scheduling.py and bankers.py; this file only renders their state.
"""

# =============================================================================
# IMPORTS
# =============================================================================

import math
import time

import plotly.graph_objects as go
import streamlit as st

from bankers import BankersState, RequestExceedsNeed, ResourcesUnavailable
from engine import BuddyAllocator, BuddyConfig, BuddyError
from paging import ClockConfig, ClockPager, ProcessTable
from scheduling import DISK_ALGORITHMS, DISK_TITLES, Process, round_robin, schedule_disk
from slab import SlabAllocator, SlabError
from utils import get_color, setup_logging

setup_logging()

st.set_page_config(page_title="OS Algorithms Visualizer", layout="wide")

PAGES = [
    "Buddy Allocator",
    "Slab Allocator",
    "Clock Replacement",
    "Thrashing",
    "Round Robin",
    "Disk Scheduling",
    "Banker's Algorithm",
    "Concepts",
]

page = st.sidebar.radio("Choose View", PAGES)

st.title("OS Algorithms Visualizer")


def parse_ints(text):
    """Parse a comma separated list of integers, ignoring blanks."""
    return [int(x.strip()) for x in text.split(',') if x.strip() != '']


def show_event_log(events, limit=20):
    """Display the most recent events, newest first."""
    st.subheader("Event Log")
    if not events:
        st.write("No events yet")
    for ev in events[-limit:][::-1]:
        st.write(ev)


# =============================================================================
# BUDDY ALLOCATOR PAGE
# =============================================================================

def buddy_figure(allocator):
    """Draw every node as a horizontal bar: x = address range, y = tree level."""
    fig = go.Figure()
    stack = [allocator.snapshot()]
    bases, widths, levels, colors, text = [], [], [], [], []
    while stack:
        node = stack.pop()
        bases.append(node.offset)
        widths.append(node.size)
        levels.append(node.level)
        if not node.is_leaf:
            colors.append("lightblue")
            text.append(f"{node.node_id}: split")
        else:
            colors.append(get_color(not node.is_free, node.allocated_to))
            text.append(f"{node.size}B " + (node.allocated_to or "free"))
        stack.extend(node.children)

    fig.add_trace(go.Bar(
        base=bases,
        x=widths,
        y=levels,
        orientation='h',
        text=text,
        marker_color=colors,
        marker_line_color="black",
        marker_line_width=1,
        hovertext=text,
        hoverinfo='text'
    ))
    fig.update_layout(
        height=80 + 40 * (max(levels) + 1),
        showlegend=False,
        xaxis=dict(title="Address", range=[0, allocator.total_size]),
        yaxis=dict(title="Level", autorange="reversed", dtick=1),
        bargap=0.1
    )
    return fig


def render_buddy():
    st.sidebar.header("Buddy Settings")
    total_size = st.sidebar.selectbox("Total memory (B)", [256, 512, 1024, 2048, 4096], index=2)
    min_block = st.sidebar.selectbox("Minimum block (B)", [8, 16, 32, 64], index=1)

    if min_block > total_size:
        st.sidebar.error("Minimum block cannot exceed total memory")
        st.stop()

    # Recreate the allocator when configuration changes
    config = BuddyConfig(total_size, min_block)
    if 'buddy' not in st.session_state or st.session_state.buddy.config != config:
        st.session_state.buddy = BuddyAllocator(config)
    allocator: BuddyAllocator = st.session_state.buddy

    if st.sidebar.button("Reset Allocator"):
        allocator.reset()
        st.sidebar.success("Allocator reset")

    col1, col2 = st.columns([1, 2])

    with col1:
        st.subheader("Allocate Memory")
        quick = [s for s in (16, 32, 64, 128, 256, 512) if min_block <= s <= total_size]
        cols = st.columns(3)
        for i, size in enumerate(quick):
            if cols[i % 3].button(f"Alloc {size}B", key=f"alloc-{size}"):
                try:
                    alloc_id = allocator.allocate(size)
                    st.success(f"Allocated {alloc_id}")
                except BuddyError as e:
                    st.error(str(e))

        custom = st.number_input("Custom size (B)", min_value=1, value=100)
        if st.button("Allocate"):
            try:
                alloc_id = allocator.allocate(int(custom))
                st.success(f"Allocated {alloc_id}")
            except BuddyError as e:
                st.error(str(e))

        st.subheader("Current Allocations")
        allocations = allocator.allocations()
        if not allocations:
            st.write("No active allocations")
        for alloc_id, alloc in allocations.items():
            c1, c2 = st.columns([3, 1])
            c1.write(f"{alloc_id}: {alloc.size}B (requested {alloc.requested}B)")
            if c2.button("Free", key=f"free-{alloc_id}"):
                allocator.free(alloc_id)
                st.rerun()

        st.subheader("Memory Usage")
        used = allocator.allocated_size
        st.progress(used / allocator.total_size)
        st.write(f"Used: {used}B | Free: {allocator.free_capacity}B")

        metrics = allocator.get_fragmentation_metrics()
        st.metric("Utilization", metrics["utilization"])
        st.metric("Internal fragmentation", metrics["internal"])
        st.metric("External fragmentation", metrics["external"])

    with col2:
        st.subheader("Memory Tree")
        st.caption(f"Total: {allocator.total_size}B | Min Block: {allocator.min_block}B")
        st.plotly_chart(buddy_figure(allocator), use_container_width=True)

        st.subheader("Last Operation")
        if not allocator.last_operations:
            st.write("Nothing yet")
        for op in allocator.last_operations:
            st.write(op.describe())

        show_event_log([op.describe() for op in allocator.history])


# =============================================================================
# SLAB ALLOCATOR PAGE
# =============================================================================

def render_slab():
    if 'slab' not in st.session_state:
        st.session_state.slab = SlabAllocator()
    slabs: SlabAllocator = st.session_state.slab

    if st.sidebar.button("Reset Slabs"):
        st.session_state.slab = slabs = SlabAllocator()

    for name, cache in slabs.caches.items():
        used, total = slabs.usage(name)
        c1, c2 = st.columns([3, 1])
        c1.subheader(f"Cache: {name} ({used}/{total} objects used)")
        if c2.button("Allocate Object", key=f"slab-alloc-{name}"):
            slab_id, index = slabs.allocate(name)
            st.success(f"{name}: slab {slab_id} object {index}")
            st.rerun()

        if not cache.slabs:
            st.write("No slabs allocated yet")
        for slab in cache.slabs:
            st.write(f"Slab {slab.slab_id} - {slab.used}/{len(slab.objects)} used")
            cols = st.columns(len(slab.objects))
            for i, free in enumerate(slab.objects):
                if free:
                    cols[i].button(".", key=f"{name}-{slab.slab_id}-{i}", disabled=True)
                elif cols[i].button("X", key=f"{name}-{slab.slab_id}-{i}"):
                    try:
                        slabs.free(name, slab.slab_id, i)
                    except SlabError as e:
                        st.error(str(e))
                    st.rerun()

    show_event_log(slabs.event_log)


# =============================================================================
# CLOCK REPLACEMENT PAGE
# =============================================================================

def clock_figure(pager):
    """Frames placed around a circle, the hand drawn from the centre."""
    snap = pager.snapshot()
    n = len(snap.frames)
    xs, ys, text, colors = [], [], [], []
    for f in snap.frames:
        angle = math.radians(f.index * (360 / n) - 90)
        xs.append(50 + 40 * math.cos(angle))
        ys.append(50 - 40 * math.sin(angle))
        label = f"F{f.index}: " + (f"P{f.page}" if f.page is not None else "Empty")
        text.append(f"{label} (R={f.reference_bit})")
        colors.append(get_color(f.page is not None, f.page))

    hand_angle = math.radians(snap.hand * (360 / n) - 90)
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=[50, 50 + 30 * math.cos(hand_angle)],
        y=[50, 50 - 30 * math.sin(hand_angle)],
        mode="lines+markers",
        line=dict(color="red", width=4),
        hoverinfo="skip"
    ))
    fig.add_trace(go.Scatter(
        x=xs,
        y=ys,
        mode="markers+text",
        marker=dict(size=48, color=colors, line=dict(color="black", width=1)),
        text=text,
        textposition="bottom center",
        hoverinfo="text"
    ))
    fig.update_layout(
        height=420,
        showlegend=False,
        xaxis=dict(visible=False, range=[0, 100]),
        yaxis=dict(visible=False, range=[0, 100], scaleanchor="x")
    )
    return fig


def render_clock():
    st.sidebar.header("Clock Settings")
    frame_count = st.sidebar.selectbox("Number of frames", [2, 3, 4, 5, 6, 7, 8], index=2)

    config = ClockConfig(frame_count)
    if 'pager' not in st.session_state or st.session_state.pager.config != config:
        st.session_state.pager = ClockPager(config)
    pager: ClockPager = st.session_state.pager

    access_input = st.sidebar.text_area(
        "Page access sequence (comma separated page numbers)",
        value="1,2,3,1,4,2,5,1,2,3"
    )
    run_speed = st.sidebar.slider("Playback speed (steps/sec)", min_value=0.5, max_value=5.0, value=2.0)

    if st.sidebar.button("Reset Simulation"):
        pager.reset()
        st.sidebar.success("Simulation reset")

    col1, col2 = st.columns([1, 2])

    with col1:
        st.subheader("Controls")
        single = st.number_input("Page", min_value=0, value=1)
        if st.button("Access Page"):
            result = pager.access(int(single))
            st.success(f"Accessed page {single} -> {'HIT' if result.hit else 'MISS'} (frame={result.frame_index})")

        if st.button("Run Sequence"):
            try:
                seq = parse_ints(access_input)
            except ValueError:
                st.error("Sequence must contain integers only")
                seq = []
            # State changes are already applied; the sleep only paces the replay
            status = st.empty()
            for p in seq:
                result = pager.access(p)
                for step in result.steps:
                    status.info(step)
                    time.sleep(1.0 / run_speed)
            if seq:
                st.success("Sequence run finished")

        st.subheader("Algorithm Steps")
        for step in pager.last_steps:
            st.write(step)

        show_event_log(pager.event_log)

    with col2:
        st.subheader("Frames")
        st.plotly_chart(clock_figure(pager), use_container_width=True)

        stats = pager.get_stats()
        m1, m2, m3 = st.columns(3)
        m1.metric("Hits", stats['hits'])
        m2.metric("Misses", stats['misses'])
        m3.metric("Hit Ratio", stats['hit_ratio'])

        st.subheader("Frame Table")
        snap = pager.snapshot()
        st.table([{
            "frame": f.index,
            "page": f.page if f.page is not None else "-",
            "R": f.reference_bit,
            "hand": "<" if f.index == snap.hand else ""
        } for f in snap.frames])

        st.subheader("Access History")
        if pager.access_history:
            st.table([{
                "page": h["page"],
                "result": "HIT" if h["hit"] else "MISS",
                "frame": h["frame"]
            } for h in pager.access_history])
        else:
            st.write("No accesses yet")


# =============================================================================
# THRASHING PAGE
# =============================================================================

def render_thrashing():
    st.sidebar.header("Thrashing Settings")
    frame_count = st.sidebar.slider("Physical frames", min_value=2, max_value=32, value=8)
    pages_per_process = st.sidebar.slider("Pages per process", min_value=1, max_value=16, value=8)

    config = ClockConfig(frame_count)
    if 'thrash_pager' not in st.session_state or st.session_state.thrash_pager.config != config:
        st.session_state.thrash_pager = ClockPager(config)
    pager: ClockPager = st.session_state.thrash_pager

    table = st.session_state.get('processes')
    if table is None:
        table = st.session_state.processes = ProcessTable(pages_per_process)
    elif table.pages_per_process != pages_per_process:
        table.reconfigure(pages_per_process, pager)

    col1, col2 = st.columns([1, 2])

    with col1:
        st.subheader("Processes")
        if st.button("Add Process"):
            proc = table.create_process()
            st.success(f"Created PID {proc.pid}")

        if not table.processes:
            st.write("No processes running")
        for pid, proc in list(table.processes.items()):
            c1, c2 = st.columns([3, 1])
            c1.write(f"PID: {pid} (Pages: {proc.page_count})")
            if c2.button("Kill", key=f"kill-{pid}"):
                pager.release(table.kill_process(pid))
                st.rerun()

        if st.button("Run Workload Round") and table.processes:
            # every process touches each of its pages once, round-robin
            for vpn in range(table.pages_per_process):
                for proc in table.processes.values():
                    pager.access(proc.pages[vpn])

        if table.processes:
            owned = [page for proc in table.processes.values() for page in proc.pages]
            page = st.selectbox("Virtual page", owned)
            if st.button("Access Page"):
                result = table.access(pager, page)
                st.info(" | ".join(result.steps))

    with col2:
        demand = table.total_demand
        thrashing = table.is_thrashing(frame_count)
        if thrashing:
            st.error(f"Thrashing: demand {demand} pages > {frame_count} frames x {table.thrashing_factor}")
        else:
            st.success(f"Stable: demand {demand} pages for {frame_count} frames")

        stats = pager.get_stats()
        m1, m2 = st.columns(2)
        m1.metric("Page Faults", stats['misses'])
        m2.metric("Fault Rate", stats['fault_rate'])

        fig = go.Figure()
        fig.add_trace(go.Bar(
            x=["Demand", "Capacity", "Threshold"],
            y=[demand, frame_count, frame_count * table.thrashing_factor],
            marker_color=["salmon" if thrashing else "lightgreen", "lightgray", "orange"]
        ))
        fig.update_layout(height=300, title="Demand vs Frames")
        st.plotly_chart(fig, use_container_width=True)

        snap = pager.snapshot()
        st.table([{"frame": f.index, "page": f.page or "-", "R": f.reference_bit} for f in snap.frames])

        st.subheader("Page Table")
        entries = table.page_table(pager)
        if entries:
            st.table([{
                "vpn": e.vpn,
                "present": "yes" if e.present else "no",
                "frame": "-" if e.frame is None else e.frame
            } for e in entries.values()])
        else:
            st.write("No pages mapped")


# =============================================================================
# ROUND ROBIN PAGE
# =============================================================================

def render_round_robin():
    st.sidebar.header("Round Robin Settings")
    quantum = st.sidebar.number_input("Time quantum", min_value=1, value=2)
    spec = st.sidebar.text_area(
        "Processes (pid,arrival,burst per line)",
        value="P1,0,5\nP2,1,3\nP3,2,1\nP4,3,2"
    )

    try:
        processes = []
        for line in spec.splitlines():
            if not line.strip():
                continue
            pid, arrival, burst = [x.strip() for x in line.split(',')]
            processes.append(Process(pid, int(arrival), int(burst)))
        result = round_robin(processes, int(quantum))
    except ValueError as e:
        st.error(f"Invalid process list: {e}")
        return

    fig = go.Figure()
    for s in result.gantt:
        fig.add_trace(go.Bar(
            base=[s.start],
            x=[s.end - s.start],
            y=["CPU"],
            orientation='h',
            text=["Idle" if s.is_idle else s.pid],
            marker_color="lightgray" if s.is_idle else get_color(True, s.pid),
            hoverinfo='text'
        ))
    fig.update_layout(height=200, showlegend=False, barmode="stack", xaxis=dict(title="Time"))
    st.subheader("Gantt Chart")
    st.plotly_chart(fig, use_container_width=True)

    m1, m2 = st.columns(2)
    m1.metric("Avg Waiting Time", result.avg_wait_time)
    m2.metric("Avg Turnaround Time", result.avg_turnaround_time)

    st.table([{
        "pid": p.pid,
        "arrival": p.arrival_time,
        "burst": p.burst_time,
        "completion": result.completion[p.pid],
        "turnaround": result.completion[p.pid] - p.arrival_time,
        "waiting": result.completion[p.pid] - p.arrival_time - p.burst_time
    } for p in processes])


# =============================================================================
# DISK SCHEDULING PAGE
# =============================================================================

def render_disk():
    st.sidebar.header("Disk Settings")
    algorithm = st.sidebar.selectbox("Algorithm", list(DISK_ALGORITHMS))
    disk_size = st.sidebar.number_input("Cylinders", min_value=2, value=200)
    head = st.sidebar.number_input("Head Start Position", min_value=0, value=53)
    direction = st.sidebar.radio("Initial direction", ["up", "down"])
    requests_text = st.sidebar.text_input("Requests", value="98,183,37,122,14,124,65,67")

    st.header(DISK_TITLES[algorithm])
    try:
        result = schedule_disk(algorithm, parse_ints(requests_text), int(head), int(disk_size), direction)
    except ValueError as e:
        st.error(str(e))
        return

    st.metric("Total Seek Time", result.total_seek)

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=result.head_movement,
        y=list(range(len(result.head_movement))),
        mode="lines+markers+text",
        text=[str(p) for p in result.head_movement],
        textposition="middle right"
    ))
    fig.update_layout(
        height=400,
        xaxis=dict(title="Cylinder", range=[0, disk_size - 1]),
        yaxis=dict(title="Step", autorange="reversed")
    )
    st.plotly_chart(fig, use_container_width=True)

    st.subheader("Movement History")
    st.table([{"step": i + 1, "position": pos, "action": action}
              for i, (pos, action) in enumerate(zip(result.head_movement, result.movement_actions()))])


# =============================================================================
# BANKER'S ALGORITHM PAGE
# =============================================================================

def render_bankers():
    st.sidebar.header("Banker's Settings")
    available_text = st.sidebar.text_input("Available", value="3,3,2")
    max_text = st.sidebar.text_area("Max (one process per line)", value="7,5,3\n3,2,2\n9,0,2\n2,2,2\n4,3,3")
    alloc_text = st.sidebar.text_area("Allocation (one process per line)", value="0,1,0\n2,0,0\n3,0,2\n2,1,1\n0,0,2")

    key = (available_text, max_text, alloc_text)
    if st.session_state.get('bankers_key') != key:
        try:
            st.session_state.bankers = BankersState(
                parse_ints(available_text),
                [parse_ints(line) for line in max_text.splitlines() if line.strip()],
                [parse_ints(line) for line in alloc_text.splitlines() if line.strip()],
            )
            st.session_state.bankers_key = key
        except ValueError as e:
            st.error(f"Invalid matrices: {e}")
            return
    state: BankersState = st.session_state.bankers

    col1, col2 = st.columns([2, 1])

    with col1:
        st.subheader("System State")
        need = state.need
        st.table([{
            "process": f"P{i}",
            "max": state.maximum[i],
            "allocation": state.allocation[i],
            "need": need[i]
        } for i in range(state.process_count)])
        st.write(f"Available: {state.available}")

        if st.button("Check Safety"):
            safe, sequence = state.is_safe()
            if safe:
                st.success("Safe sequence: " + " -> ".join(f"P{i}" for i in sequence))
            else:
                st.error("System is in an unsafe state")

    with col2:
        st.subheader("Resource Request")
        pid = st.number_input("Process", min_value=0, max_value=max(0, state.process_count - 1), value=0)
        request_text = st.text_input("Request", value=",".join("0" * state.resource_count))
        if st.button("Request"):
            try:
                outcome = state.request(int(pid), parse_ints(request_text))
            except (RequestExceedsNeed, ResourcesUnavailable, ValueError, IndexError) as e:
                st.error(str(e))
            else:
                if outcome.granted:
                    st.success("Request can be granted: " + " -> ".join(f"P{i}" for i in outcome.sequence))
                else:
                    st.warning("Request cannot be granted (Would lead to unsafe state)")


# =============================================================================
# CONCEPTS PAGE - Educational Content
# =============================================================================

def render_concepts():
    st.header("Operating System Concepts Used in This Project")
    st.markdown(
        """
        ### **1. Buddy Allocation**
        - Memory is a single power-of-two region managed as a binary tree.
        - Requests are rounded up to a power of two (never below the minimum block).
        - A free block that is too large is **split** into two halves, its *buddies*.
        - When a block is freed and its buddy is also free, the two **merge** back.

        ### **2. Slab Allocation**
        - Caches of same-sized kernel objects (e.g. `task_struct`).
        - Each cache grows by whole slabs; objects are reused without fragmentation.

        ### **3. Clock (Second-Chance) Replacement**
        - Frames form a circle, each with a **reference bit**.
        - On a fault the hand sweeps: bit 1 -> clear it (second chance), bit 0 -> evict.
        - A hit only sets the frame's reference bit.

        ### **4. Thrashing**
        - When the pages processes need far exceed the frames available,
          the system spends its time servicing page faults.

        ### **5. Round Robin**
        - Each ready process runs for at most one time quantum, in turn.

        ### **6. Disk Scheduling**
        - FCFS, SSTF, SCAN, C-SCAN, LOOK and C-LOOK order pending cylinder
          requests to reduce total head movement.

        ### **7. Banker's Algorithm**
        - A request is granted only if the system stays in a **safe state**,
          i.e. some order lets every process finish.
        """
    )


# =============================================================================
# DISPATCH
# =============================================================================

RENDERERS = {
    "Buddy Allocator": render_buddy,
    "Slab Allocator": render_slab,
    "Clock Replacement": render_clock,
    "Thrashing": render_thrashing,
    "Round Robin": render_round_robin,
    "Disk Scheduling": render_disk,
    "Banker's Algorithm": render_bankers,
    "Concepts": render_concepts,
}

RENDERERS[page]()

# =============================================================================
# FOOTER - Usage Tips
# =============================================================================

st.markdown("---")
st.markdown(
    "**Usage tips**:\n"
    "- Buddy: allocate a few blocks, free them in different orders and watch buddies merge.\n"
    "- Clock: run `1,2,3,1,4` with 3 frames to see second chances being granted.\n"
    "- Thrashing: keep adding processes until demand crosses the threshold."
)
