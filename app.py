"""
Thermal Network — Interactive Streamlit Demo

Run with:
    streamlit run app.py
"""

import math
import numpy as np
import streamlit as st
import plotly.graph_objects as go
from plotly.subplots import make_subplots
from typing import Any, Dict

from thermal_network import Environment, Simulation, SolarPanel
from thermal_network.visualization import (
    build_connection_instances, build_node_instances, temperature_color,
)


# ─────────────────────────────────────────────────────────────────────────────
# PAGE CONFIG
# ─────────────────────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Thermal Network",
    page_icon="🌡️",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ─────────────────────────────────────────────────────────────────────────────
# COLOUR PALETTE
# ─────────────────────────────────────────────────────────────────────────────
C = dict(
    panel     = "#e74c3c",
    extractor = "#f39c12",
    storage   = "#9b59b6",
    ambient   = "#3498db",
    connector = "#7f8c8d",
    forward   = "#27ae60",
    reverse   = "#2980b9",
)
NODE_COLORS = [C["panel"], C["extractor"], C["storage"]]
NODE_NAMES  = ["Panel node", "Extractor", "Storage"]

TEMPLATE = "plotly_white"


# ─────────────────────────────────────────────────────────────────────────────
# NETWORK BUILDER
# ─────────────────────────────────────────────────────────────────────────────
def build_network(cfg: Dict, reverse_order: bool = False) -> Simulation:
    """
    Panel node <-> extractor loop, plus an optional storage node filled
    from the extractor. reverse_order inserts the connections backwards.
    """
    sim = Simulation()
    panel = sim.add_node(cfg["panel_volume"], cfg["panel_temp"],
                         cfg["insulation"], cfg["capacity"], (-0.5, 0.0, 0.0))
    extractor = sim.add_node(cfg["extractor_volume"], cfg["extractor_temp"],
                             cfg["insulation"], cfg["capacity"], (0.5, 0.0, 0.0))

    links = [
        (panel, extractor, cfg["flow_out"]),
        (extractor, panel, cfg["flow_back"]),
    ]
    if cfg["with_storage"]:
        storage = sim.add_node(0.0, 0.0, cfg["insulation"], cfg["capacity"], (0.5, 0.0, 1.0))
        links.append((extractor, storage, cfg["flow_storage"]))

    if reverse_order:
        links = links[::-1]
    for a, b, flow in links:
        sim.connect_node(a, b, flow)

    sim.attach_solar_panel(panel, SolarPanel(area=cfg["panel_area"],
                                             efficiency=cfg["panel_efficiency"]))
    return sim


# ─────────────────────────────────────────────────────────────────────────────
# SIMULATION ENGINE
# ─────────────────────────────────────────────────────────────────────────────
@st.cache_data(show_spinner="Running simulation…")
def run_simulation(cfg_items: tuple, reverse_order: bool = False) -> Dict[str, Any]:
    """
    Run the network for the configured number of ticks.
    Arguments passed as a sorted tuple of (key, value) pairs so that
    st.cache_data can hash them reliably. The final Simulation is
    returned alongside the histories so the network view never re-runs it.
    """
    cfg = dict(cfg_items)
    sim = build_network(cfg, reverse_order)

    environment = Environment(
        sun_angle     =math.radians(cfg["sun_angle_deg"]),
        sun_irradiance=cfg["irradiance"],
        cloud_cover   =cfg["cloud_cover"],
        ambient_temp  =cfg["ambient_temp"],
    )
    dt = cfg["dt"]
    history = sim.run(environment, dt, cfg["num_ticks"])

    return {
        "time":    np.arange(1, cfg["num_ticks"] + 1) * dt,
        "temps":   history["temps"],
        "volumes": history["volumes"],
        "ambient": np.full(cfg["num_ticks"], cfg["ambient_temp"]),
        "final":   sim,
    }


def network_figure(sim: Simulation) -> go.Figure:
    """3D view of the draw instances a renderer would receive."""
    fig = go.Figure()
    temps = [node.fluid.temp for node in sim.nodes()]
    lo, hi = min(temps), max(temps)

    for instance in build_connection_instances(sim):
        half = instance.model_matrix[:3, 1]
        mid  = instance.translation
        ends = np.array([mid + half, mid - half])
        fig.add_trace(go.Scatter3d(
            x=ends[:, 0], y=ends[:, 2], z=ends[:, 1],
            mode="lines",
            line=dict(color=C["connector"],
                      width=max(np.linalg.norm(instance.model_matrix[:3, 0]) * 400, 1.0)),
            showlegend=False,
            hoverinfo="skip",
        ))

    for i, (node, instance) in enumerate(zip(sim.nodes(), build_node_instances(sim))):
        x, y, z = instance.translation
        r, g, b = temperature_color(node.fluid.temp, lo, hi)
        fig.add_trace(go.Scatter3d(
            x=[x], y=[z], z=[y],
            mode="markers+text",
            marker=dict(size=18, color=f"rgb({int(r*255)},{int(g*255)},{int(b*255)})"),
            text=[f"{node.fluid.temp:.1f} °C"],
            textposition="top center",
            name=NODE_NAMES[i] if i < len(NODE_NAMES) else f"Node {i}",
            hovertemplate=(f"Volume: {node.fluid.volume:.2f} / {node.capacity:.1f}"
                           "<extra></extra>"),
        ))

    fig.update_layout(
        template=TEMPLATE, height=480,
        title="Network (final state)",
        scene=dict(aspectmode="data"),
    )
    return fig


# ─────────────────────────────────────────────────────────────────────────────
# SIDEBAR
# ─────────────────────────────────────────────────────────────────────────────
with st.sidebar:
    st.title("⚙️ Configuration")

    with st.expander("🛢️ Nodes", expanded=True):
        panel_volume     = st.slider("Panel node volume",     0.0, 20.0, 10.0, 0.5)
        panel_temp       = st.slider("Panel node temp (°C)",  0.0, 100.0, 50.0, 1.0)
        extractor_volume = st.slider("Extractor volume",      0.0, 20.0, 10.0, 0.5)
        extractor_temp   = st.slider("Extractor temp (°C)",   0.0, 100.0, 20.0, 1.0)
        capacity         = st.slider("Capacity (each)",       1.0, 40.0, 20.0, 1.0)
        insulation       = st.slider("Insulation",            0.0, 1.0, 0.9, 0.01)
        with_storage     = st.checkbox("Add storage node", value=False)

    with st.expander("🔀 Connections", expanded=False):
        flow_out     = st.slider("Panel → extractor flow", 0.0, 5.0, 1.0, 0.1)
        flow_back    = st.slider("Extractor → panel flow", 0.0, 5.0, 1.0, 0.1)
        flow_storage = st.slider("Extractor → storage flow", 0.0, 5.0, 0.5, 0.1)

    with st.expander("☀️ Solar Panel & Sky", expanded=False):
        panel_area       = st.slider("Panel area (m²)",     0.001, 0.1, 0.02, 0.001, format="%.3f")
        panel_efficiency = st.slider("Panel efficiency",    0.0, 1.0, 0.7, 0.01)
        sun_angle_deg    = st.slider("Sun angle (°)",       -90, 180, 90, 1)
        irradiance       = st.slider("Irradiance (W/m²)",   0, 1400, 1000, 10)
        cloud_cover      = st.slider("Cloud cover",         0.0, 1.0, 0.0, 0.05)
        ambient_temp     = st.slider("Ambient temp (°C)",   -20.0, 40.0, 20.0, 0.5)

    with st.expander("⏱️ Time Stepping", expanded=False):
        dt        = st.select_slider("dt", options=[0.001, 0.005, 0.01, 0.016, 0.05, 0.1, 0.5, 1.0], value=0.016)
        num_ticks = st.slider("Ticks", 100, 5000, 1000, 100)

    if insulation < 1.0 and dt * (1.0 - insulation) > 1.0:
        st.warning("dt × (1 − insulation) > 1: heat loss will overshoot ambient.")

    run = st.button("▶ Run Simulation", type="primary", use_container_width=True)

cfg = dict(
    panel_volume=panel_volume, panel_temp=panel_temp,
    extractor_volume=extractor_volume, extractor_temp=extractor_temp,
    capacity=capacity, insulation=insulation, with_storage=with_storage,
    flow_out=flow_out, flow_back=flow_back, flow_storage=flow_storage,
    panel_area=panel_area, panel_efficiency=panel_efficiency,
    sun_angle_deg=sun_angle_deg, irradiance=irradiance,
    cloud_cover=cloud_cover, ambient_temp=ambient_temp,
    dt=dt, num_ticks=num_ticks,
)

if run:
    cfg_items = tuple(sorted(cfg.items()))
    st.session_state["cfg"]     = cfg
    st.session_state["history"] = run_simulation(cfg_items)
    st.session_state["reverse"] = run_simulation(cfg_items, reverse_order=True)


# ─────────────────────────────────────────────────────────────────────────────
# MAIN — HEADER
# ─────────────────────────────────────────────────────────────────────────────
st.title("🌡️ Thermal Network — Interactive Demo")

if "history" not in st.session_state:
    st.info("Configure the network in the sidebar and click **▶ Run Simulation** to begin.")
    st.markdown("""
### Each tick runs three passes

1. **Heat loss** — every node relaxes toward ambient by `(1 − insulation) · dt`
2. **Solar heating** — nodes with a panel absorb `irradiance · sin⁺(sun angle) · (1 − clouds) · area · efficiency · dt`
3. **Fluid transfer** — connections move fluid one after another, in insertion order
""")
    st.stop()


h    = st.session_state["history"]
hr   = st.session_state["reverse"]
run_cfg = st.session_state["cfg"]
t    = h["time"]
n_nodes = h["temps"].shape[1]

m1, m2, m3, m4 = st.columns(4)
m1.metric("Panel node", f"{h['temps'][-1, 0]:.1f} °C",
          delta=f"{h['temps'][-1, 0] - run_cfg['panel_temp']:+.1f} °C")
m2.metric("Extractor", f"{h['temps'][-1, 1]:.1f} °C",
          delta=f"{h['temps'][-1, 1] - run_cfg['extractor_temp']:+.1f} °C")
m3.metric("Total volume", f"{h['volumes'][-1].sum():.2f}")
m4.metric("Simulated time", f"{t[-1]:.2f}")

st.markdown("---")

tab_temps, tab_vol, tab_net, tab_order = st.tabs([
    "🌡️ Temperatures",
    "🛢️ Volumes",
    "🕸️ Network",
    "🔀 Order Explorer",
])

with tab_temps:
    fig = go.Figure()
    for i in range(n_nodes):
        fig.add_trace(go.Scatter(
            x=t, y=h["temps"][:, i], name=NODE_NAMES[i],
            line=dict(color=NODE_COLORS[i], width=2.2),
            hovertemplate=f"{NODE_NAMES[i]}: %{{y:.2f}} °C<extra></extra>",
        ))
    fig.add_trace(go.Scatter(
        x=t, y=h["ambient"], name="Ambient",
        line=dict(color=C["ambient"], width=1.5, dash="dash"),
    ))
    fig.update_layout(
        template=TEMPLATE, height=460,
        title="Node Temperatures",
        xaxis_title="Simulation time", yaxis_title="Temperature (°C)",
        hovermode="x unified",
    )
    st.plotly_chart(fig, use_container_width=True)

with tab_vol:
    fig = go.Figure()
    for i in range(n_nodes):
        fig.add_trace(go.Scatter(
            x=t, y=h["volumes"][:, i], name=NODE_NAMES[i],
            stackgroup="volume",
            line=dict(color=NODE_COLORS[i], width=1.0),
        ))
    fig.add_hline(y=run_cfg["capacity"], line_dash="dot",
                  annotation_text="capacity (per node)")
    fig.update_layout(
        template=TEMPLATE, height=420,
        title="Fluid Distribution",
        xaxis_title="Simulation time", yaxis_title="Volume",
        hovermode="x unified",
    )
    st.plotly_chart(fig, use_container_width=True)

with tab_net:
    st.plotly_chart(network_figure(h["final"]), use_container_width=True)
    st.caption("Connector thickness is proportional to flow rate; node colour runs blue → red with temperature.")

with tab_order:
    st.markdown(
        "Connections are applied one after another, so a node drained by one connection "
        "and filled by another ends the tick differently depending on which was added first."
    )
    fig = make_subplots(rows=1, cols=2, subplot_titles=["Temperature", "Volume"],
                        horizontal_spacing=0.1)
    for i in range(n_nodes):
        for hist, label, clr, dash in [(h, "inserted", C["forward"], "solid"),
                                       (hr, "reversed", C["reverse"], "dash")]:
            fig.add_trace(go.Scatter(
                x=t, y=hist["temps"][:, i], name=f"{NODE_NAMES[i]} ({label})",
                line=dict(color=clr, dash=dash, width=1.8),
                legendgroup=label,
            ), row=1, col=1)
            fig.add_trace(go.Scatter(
                x=t, y=hist["volumes"][:, i], showlegend=False,
                line=dict(color=clr, dash=dash, width=1.8),
                legendgroup=label,
            ), row=1, col=2)
    fig.update_layout(template=TEMPLATE, height=440, title="Insertion Order vs Reversed")
    st.plotly_chart(fig, use_container_width=True)

    diff = float(np.max(np.abs(h["volumes"] - hr["volumes"])))
    st.metric("Max volume difference", f"{diff:.4f}")
