import asyncio
from textwrap import fill

import streamlit as st

import structview as sv
from structview.models import ColorScheme, ViewMode
from structview.settings import get_settings
from structview.viewer import MAX_ATOM_SIZE, MIN_ATOM_SIZE


def get_registry() -> sv.StructureRegistry:
    if "registry" not in st.session_state:
        st.session_state.registry = sv.StructureRegistry()
    return st.session_state.registry


def get_viewer() -> sv.ViewerController:
    if "viewer" not in st.session_state:
        configuration = sv.ViewerConfiguration.from_settings(get_settings().viewer)
        st.session_state.viewer = sv.ViewerController(configuration)
    return st.session_state.viewer


def load_uploads(registry, uploaded_files):
    # Streamlit hands back the same uploads on each rerun.
    seen = st.session_state.setdefault("seen_uploads", set())
    uploads = [(f.name, f.getvalue()) for f in uploaded_files if f.file_id not in seen]
    if not uploads:
        return
    seen.update(f.file_id for f in uploaded_files)
    loader = sv.StructureLoader(registry)
    with st.spinner(f"Loading {len(uploads)} file{'s' if len(uploads) != 1 else ''}..."):
        loaded = asyncio.run(loader.load_uploads(uploads))
    if len(loaded) != len(uploads):
        st.error(f"{len(uploads) - len(loaded)} file(s) could not be loaded, see the logs for details.")


def show_files(registry):
    st.sidebar.markdown("### 📁 Files")
    for index, binding in enumerate(registry.files):
        col1, col2 = st.sidebar.columns([4, 1])
        col1.write(binding.file_name)
        if col2.button("🗑️", key=f"delete-{binding.structure_id}"):
            registry.delete_file_at(index)
            st.rerun()


def show_viewer_controls(viewer):
    configuration = viewer.configuration
    st.sidebar.markdown("### 🎨 Viewer")
    modes = list(ViewMode)
    schemes = list(ColorScheme)
    viewer.update(
        view_mode=st.sidebar.selectbox("View mode", modes, index=modes.index(configuration.view_mode)),
        color_scheme=st.sidebar.selectbox("Color scheme", schemes, index=schemes.index(configuration.color_scheme)),
        atom_size=st.sidebar.slider(
            "Atom size", min_value=MIN_ATOM_SIZE, max_value=MAX_ATOM_SIZE, value=configuration.atom_size, step=0.1
        ),
        show_ligand=st.sidebar.toggle("Show ligands", value=configuration.show_ligand),
        show_water_ion=st.sidebar.toggle("Show water and ions", value=configuration.show_water_ion),
    )
    if st.sidebar.button("Reset viewer"):
        viewer.reset()
        st.rerun()


def show_statistics(molecule):
    stats = sv.statistics(molecule)

    col1, col2, col3, col4 = st.columns(4)
    col1.markdown("⚛️ Atoms")
    col1.write(f"{stats.total_atoms:,}")
    col2.markdown("🔗 Chains")
    col2.write(f"{len(stats.chain_info):,}")
    col3.markdown("💧 Water")
    col3.write(f"{stats.water_count:,}")
    col4.markdown("🧂 Ions")
    col4.write(f"{stats.ion_count:,}")

    st.markdown("#### Chains")
    st.dataframe(
        [
            {"Chain": chain.chain_id or "-", "#Residues": chain.residue_count, "#Atoms": chain.atom_count}
            for chain in stats.chain_info
        ],
        width="content",
    )
    st.caption(f"Elements: {', '.join(stats.unique_elements)}")

    for chain_id, seq in sv.sequence(molecule).items():
        with st.expander(f"🧬 Sequence of chain {chain_id or '-'}", expanded=False):
            st.code(fill(seq, width=60), language="text")


def show_structure(structure, viewer):
    st.subheader(f"🗂️ {structure.name}")
    metadata = structure.metadata
    if metadata is not None and metadata.confidence_score is not None:
        st.metric("Confidence", f"{metadata.confidence_score:.1f}")
    if metadata is not None and metadata.error_message:
        st.error(metadata.error_message)

    if not structure.parse_locally:
        st.info("This format is not analyzed locally.")
        st.download_button("Download structure", data=structure.raw, file_name=structure.name)
        return
    if structure.molecule is None:
        st.warning("Structure is still loading.")
        return

    show_statistics(structure.molecule)

    if metadata is not None and metadata.distogram:
        st.markdown("#### Distogram")
        ids = sv.residue_ids(structure.molecule)
        st.caption(f"Residues {ids[0]} to {ids[-1]}, distances in Å")
        st.image(_normalized(metadata.distogram), clamp=True, width=400)

    residues = st.multiselect("Highlight residues", sv.residue_ids(structure.molecule))
    viewer.highlight_residues(residues)


def _normalized(matrix):
    top = max((max(row) for row in matrix), default=0.0) or 1.0
    return [[1.0 - value / top for value in row] for row in matrix]


st.set_page_config(
    page_title="structview",
    page_icon="🧬",
    layout="wide",
)

"""
# 🧬 structview  Structure Explorer
"""

"""
Upload structure files (`.pdb`, `.ent`) and explore their content.
"""

registry = get_registry()
viewer = get_viewer()

# ========================================================
# Sidebar
# ========================================================
st.sidebar.title("structview")
show_files(registry)
show_viewer_controls(viewer)


# ========================================================
# Main Interface
# ========================================================
uploaded_files = st.file_uploader(
    "Choose structure files",
    accept_multiple_files=True,
    help="Files other than .pdb and .ent are kept as is and not analyzed",
)
if uploaded_files:
    load_uploads(registry, uploaded_files)

if len(registry) == 0:
    st.warning("Please upload a structure file to begin.")
else:
    names = [structure.name for structure in registry.structures]
    selected = st.radio("Structure", range(len(names)), index=registry.selection, format_func=names.__getitem__)
    registry.select(selected)
    show_structure(registry.get_selected(), viewer)
