"""
Streamlit Frontend for InvoiceStudio

Single-page bookkeeping screen for a small team sharing one password.

DESIGN PRINCIPLES:
1. Everything on one screen: form, filters, list, import/export
2. Destructive actions always ask for confirmation
3. Errors are shown where they happen, in plain language
4. Nothing is cached locally beyond the browser session

State lives in st.session_state. The invoice list is loaded once per
workspace and then updated in place after each add/edit/delete; imports
reload it from the store.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import streamlit as st

from invoice_studio.agents import ExtractionError
from invoice_studio.auth import SessionGate
from invoice_studio.config import get_settings, validate_all_settings
from invoice_studio.logs import configure_logging
from invoice_studio.models.invoice import (
    DEFAULT_FORM_CATEGORY,
    Invoice,
    InvoiceCategory,
    InvoiceDraft,
    InvoiceStatus,
    SortOption,
    ViewFilters,
)
from invoice_studio.orchestrator import (
    InvoiceFlow,
    LastWorkspaceError,
    TransferFlow,
    UnsupportedFileError,
    WorkspaceFlow,
    create_app_components,
)
from invoice_studio.queries import build_view, global_stats, status_percentage, supplier_stats
from invoice_studio.services.storage import InMemoryInvoiceStore, StorageError
from invoice_studio.services.transfer import CsvImportError
from invoice_studio.validation import InvoiceValidationError, find_duplicate


# Page configuration
st.set_page_config(
    page_title="InvoiceStudio",
    page_icon="🧾",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #2c3e50;
    }
    .muted {
        color: #6c757d;
        font-size: 0.9em;
    }
</style>
""", unsafe_allow_html=True)

configure_logging()


ALL = "All"
STATUS_ICONS = {
    InvoiceStatus.PAID: "🟢",
    InvoiceStatus.PENDING: "🟡",
    InvoiceStatus.OVERDUE: "🔴",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def money(amount: Decimal) -> str:
    return f"€{amount:,.2f}"


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        components = create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to connect to storage, using a temporary in-memory store: {e}")
        components = create_app_components(use_storage=False)

    store = components[3]
    if isinstance(store, InMemoryInvoiceStore):
        try:
            demo_mode = get_settings().app.demo_mode
        except Exception:
            demo_mode = False
        if demo_mode:
            run_async(store.seed_demo_data())
    return components


def flash(kind: str, message: str):
    """Queue a message to show on the next rerun."""
    st.session_state["flash"] = (kind, message)


def show_flash():
    kind, message = st.session_state.pop("flash", (None, None))
    if kind == "success":
        st.success(message)
    elif kind == "error":
        st.error(message)
    elif kind == "info":
        st.info(message)


# =============================================================================
# SESSION STATE
# =============================================================================

def init_state():
    defaults = {
        "workspaces": None,
        "workspace_id": None,
        "invoices": [],
        "loaded_workspace_id": None,
        "editing_id": None,
        "uploader_nonce": 0,
        "pdf_export": None,
    }
    for key, value in defaults.items():
        st.session_state.setdefault(key, value)
    if "form_supplier" not in st.session_state or st.session_state.pop("form_reset_pending", False):
        reset_form()
    if "filter_search" not in st.session_state:
        reset_filters()


def load_form(draft: InvoiceDraft):
    st.session_state["form_supplier"] = draft.supplier
    st.session_state["form_invoice_number"] = draft.invoice_number
    st.session_state["form_date"] = draft.date
    st.session_state["form_amount"] = float(draft.amount)
    st.session_state["form_description"] = draft.description
    st.session_state["form_category"] = draft.category.value
    st.session_state["form_status"] = draft.status.value


def draft_from_form() -> InvoiceDraft:
    return InvoiceDraft(
        supplier=st.session_state["form_supplier"],
        invoice_number=st.session_state["form_invoice_number"],
        date=st.session_state["form_date"] or date.today(),
        amount=Decimal(str(st.session_state["form_amount"] or 0)),
        description=st.session_state["form_description"],
        category=st.session_state["form_category"],
        status=st.session_state["form_status"],
    )


def reset_form():
    st.session_state["editing_id"] = None
    load_form(InvoiceDraft(category=DEFAULT_FORM_CATEGORY))


def reset_filters():
    st.session_state["filter_search"] = ""
    st.session_state.pop("filter_from", None)
    st.session_state.pop("filter_to", None)
    st.session_state["filter_category"] = ALL
    st.session_state["filter_status"] = ALL
    st.session_state["filter_sort"] = SortOption.DATE_DESC.value


def current_filters() -> ViewFilters:
    category = st.session_state["filter_category"]
    status = st.session_state["filter_status"]
    return ViewFilters(
        search_term=st.session_state["filter_search"],
        date_from=st.session_state.get("filter_from"),
        date_to=st.session_state.get("filter_to"),
        category=None if category == ALL else category,
        status=None if status == ALL else status,
        sort=st.session_state["filter_sort"],
    )


def editing_invoice() -> Optional[Invoice]:
    editing_id = st.session_state.get("editing_id")
    for invoice in st.session_state["invoices"]:
        if invoice.id == editing_id:
            return invoice
    return None


def current_workspace_name() -> str:
    for workspace in st.session_state["workspaces"] or []:
        if workspace.id == st.session_state["workspace_id"]:
            return workspace.name
    return ""


def ensure_workspaces(workspace_flow: WorkspaceFlow):
    """Load workspaces once per session and keep a valid selection."""
    if st.session_state["workspaces"] is None:
        try:
            st.session_state["workspaces"] = run_async(workspace_flow.list_workspaces())
        except StorageError as e:
            st.error(f"Could not load databases: {e}")
            st.stop()

    ids = [w.id for w in st.session_state["workspaces"]]
    if st.session_state["workspace_id"] not in ids:
        st.session_state["workspace_id"] = ids[0]


def ensure_invoices(invoice_flow: InvoiceFlow):
    """Load the selected workspace's invoices when the selection changes."""
    workspace_id = st.session_state["workspace_id"]
    if st.session_state["loaded_workspace_id"] == workspace_id:
        return

    try:
        st.session_state["invoices"] = run_async(invoice_flow.load(workspace_id))
    except StorageError as e:
        st.session_state["invoices"] = []
        st.error(f"Could not load invoices: {e}")
    st.session_state["loaded_workspace_id"] = workspace_id
    reset_form()
    reset_filters()


# =============================================================================
# CALLBACKS
# =============================================================================

def on_start_edit(invoice: Invoice):
    st.session_state["editing_id"] = invoice.id
    load_form(invoice.to_draft())


def on_submit_form(invoice_flow: InvoiceFlow):
    editing = editing_invoice()
    try:
        invoice = run_async(invoice_flow.save(
            st.session_state["workspace_id"],
            draft_from_form(),
            st.session_state["invoices"],
            editing,
        ))
    except InvoiceValidationError as e:
        flash("error", str(e))
        return
    except StorageError as e:
        flash("error", f"Could not save invoice: {e}")
        return

    st.session_state["invoices"] = InvoiceFlow.upsert_local(st.session_state["invoices"], invoice)
    reset_form()
    flash("success", "Invoice updated" if editing else "Invoice added")


def on_create_workspace(workspace_flow: WorkspaceFlow):
    name = st.session_state.get("new_workspace_name", "")
    try:
        workspace = run_async(workspace_flow.create_workspace(name))
    except ValueError as e:
        flash("error", str(e))
        return
    except StorageError as e:
        flash("error", f"Could not create database: {e}")
        return

    st.session_state["workspaces"] = st.session_state["workspaces"] + [workspace]
    st.session_state["workspace_id"] = workspace.id
    st.session_state["new_workspace_name"] = ""
    flash("success", f"Database '{workspace.name}' created")


# =============================================================================
# DIALOGS
# =============================================================================

@st.dialog("Delete invoice")
def confirm_delete_invoice(invoice: Invoice, invoice_flow: InvoiceFlow):
    st.write(
        f"Delete invoice **{invoice.invoice_number}** from **{invoice.supplier}** "
        f"({money(invoice.amount)})? This cannot be undone."
    )
    col1, col2 = st.columns(2)
    if col1.button("Delete", type="primary"):
        try:
            run_async(invoice_flow.delete(invoice.id))
        except StorageError as e:
            st.error(f"Could not delete invoice: {e}")
            return
        st.session_state["invoices"] = InvoiceFlow.remove_local(
            st.session_state["invoices"], invoice.id
        )
        if st.session_state.get("editing_id") == invoice.id:
            # Form widgets already exist in this run; reset on the next one
            st.session_state["form_reset_pending"] = True
        flash("success", "Invoice deleted")
        st.rerun()
    if col2.button("Cancel"):
        st.rerun()


@st.dialog("Delete database")
def confirm_delete_workspace(workspace_flow: WorkspaceFlow):
    name = current_workspace_name()
    st.warning(f"Delete **{name}** and all of its invoices? This cannot be undone.")
    col1, col2 = st.columns(2)
    if col1.button("Delete", type="primary"):
        try:
            remaining = run_async(
                workspace_flow.delete_workspace(st.session_state["workspace_id"])
            )
        except LastWorkspaceError as e:
            st.error(str(e))
            return
        except StorageError as e:
            st.error(f"Could not delete database: {e}")
            return
        st.session_state["workspaces"] = remaining
        st.session_state["workspace_id"] = remaining[0].id
        flash("success", f"Database '{name}' deleted")
        st.rerun()
    if col2.button("Cancel"):
        st.rerun()


@st.dialog("Supplier statistics", width="large")
def show_supplier_stats(supplier: str):
    stats = supplier_stats(st.session_state["invoices"], supplier)

    st.subheader(stats.supplier)
    col1, col2, col3 = st.columns(3)
    col1.metric("Total", money(stats.total_amount))
    col2.metric("Invoices", stats.count)
    col3.metric("Average", money(stats.average_amount))

    st.markdown("**By status**")
    for status in InvoiceStatus:
        count = getattr(stats, f"{status.name.lower()}_count")
        amount = getattr(stats, f"{status.name.lower()}_amount")
        st.write(f"{STATUS_ICONS[status]} {status.value}: {count} ({money(amount)})")

    if stats.top_categories:
        st.markdown("**Top categories**")
        for share in stats.top_categories:
            st.write(f"{share.category.value}: {money(share.amount)} ({share.percent:.0f}%)")
            st.progress(min(share.percent / 100, 1.0))


@st.dialog("Global statistics", width="large")
def show_global_stats():
    stats = global_stats(st.session_state["invoices"])

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total", money(stats.total_amount))
    col2.metric("Paid", money(stats.paid_amount))
    col3.metric("Pending", money(stats.pending_amount))
    col4.metric("Overdue", money(stats.overdue_amount))

    st.markdown("**Financial health**")
    st.markdown(
        f"<div class='big-number'>{stats.health_score:.0f}/100</div>"
        f"<div class='muted'>{stats.health_label} · paid {stats.paid_ratio:.0%} · "
        f"overdue {stats.overdue_ratio:.0%}</div>",
        unsafe_allow_html=True,
    )
    st.progress(stats.health_score / 100)

    left, right = st.columns(2)
    with left:
        st.markdown("**Suppliers**")
        if not stats.suppliers:
            st.caption("No invoices yet")
        for share in stats.suppliers:
            st.write(f"{share.name}: {money(share.amount)} ({share.percent_of_total:.0f}%)")
            st.progress(min(share.percent_of_max / 100, 1.0))
    with right:
        st.markdown("**Categories**")
        if not stats.categories:
            st.caption("No invoices yet")
        for share in stats.categories:
            st.write(f"{share.category.value}: {money(share.amount)} ({share.percent:.0f}%)")
            st.progress(min(share.percent / 100, 1.0))


@st.dialog("System info")
def show_system_info(gate: SessionGate):
    if not gate.system_info_unlocked:
        candidate = st.text_input("Password", type="password", key="system_info_password")
        if st.button("Unlock"):
            if gate.unlock_system_info(candidate):
                st.rerun(scope="fragment")
            st.error("Wrong password")
        return

    status = validate_all_settings()
    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (PDF extraction)", "gemini"),
        ("Application", "app"),
    ]
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.caption(f"Environment: {get_settings().app.app_environment}")
    store = get_components()[3]
    st.caption(f"Store: {type(store).__name__}")
    st.caption(f"Databases: {len(st.session_state['workspaces'] or [])}")
    st.caption(f"Loaded invoices: {len(st.session_state['invoices'])}")


# =============================================================================
# PAGES
# =============================================================================

def render_login(gate: SessionGate):
    st.title("🧾 InvoiceStudio")
    st.markdown("Enter the team password to continue.")

    with st.form("login"):
        candidate = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in")

    if submitted:
        if gate.login(candidate):
            st.rerun()
        st.error("Wrong password")


def render_sidebar(workspace_flow: WorkspaceFlow, gate: SessionGate, view):
    st.sidebar.title("🧾 InvoiceStudio")

    # Workspace selector
    workspaces = st.session_state["workspaces"]
    ids = [w.id for w in workspaces]
    names = {w.id: w.name for w in workspaces}
    selected = st.sidebar.selectbox(
        "Database",
        options=ids,
        index=ids.index(st.session_state["workspace_id"]),
        format_func=lambda workspace_id: names[workspace_id],
    )
    if selected != st.session_state["workspace_id"]:
        st.session_state["workspace_id"] = selected
        st.rerun()

    with st.sidebar.expander("➕ New database"):
        st.text_input("Name", key="new_workspace_name")
        st.button("Create", on_click=on_create_workspace, args=(workspace_flow,))

    if st.sidebar.button("🗑️ Delete database", disabled=len(workspaces) <= 1):
        confirm_delete_workspace(workspace_flow)

    # Summary of the filtered view
    totals = view.totals
    st.sidebar.markdown("---")
    st.sidebar.metric("Invoices", totals.total_count)
    st.sidebar.metric("Total amount", money(totals.total_amount))
    for status in InvoiceStatus:
        count = totals.count_for(status)
        percent = status_percentage(count, totals.total_count)
        st.sidebar.write(f"{STATUS_ICONS[status]} {status.value}: {count} ({percent}%)")
        st.sidebar.progress(percent / 100)

    st.sidebar.markdown("---")
    if st.sidebar.button("📊 Global statistics"):
        show_global_stats()
    if st.sidebar.button("⚙️ System info"):
        show_system_info(gate)
    if st.sidebar.button("🚪 Log out"):
        gate.logout()
        st.rerun()


def render_form(invoice_flow: InvoiceFlow) -> Optional[str]:
    """Draw the add/edit form. Returns the id of a clashing invoice, if any."""
    editing = editing_invoice()
    st.subheader("✏️ Edit invoice" if editing else "➕ New invoice")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.text_input("Supplier *", key="form_supplier")
        st.date_input("Date", key="form_date")
    with col2:
        st.text_input("Invoice number *", key="form_invoice_number")
        st.number_input("Amount (€) *", min_value=0.0, step=0.01, format="%.2f", key="form_amount")
    with col3:
        st.selectbox("Category", options=[c.value for c in InvoiceCategory], key="form_category")
        st.selectbox("Status", options=[s.value for s in InvoiceStatus], key="form_status")
    st.text_area("Description", key="form_description", height=68)

    # Live duplicate warning
    duplicate = find_duplicate(
        st.session_state["form_invoice_number"],
        st.session_state["invoices"],
        editing_id=editing.id if editing else None,
    )
    if duplicate is not None:
        st.warning(
            f"⚠️ Invoice number {duplicate.invoice_number} already exists "
            f"({duplicate.supplier}, {duplicate.date.isoformat()})"
        )

    col1, col2 = st.columns(2)
    col1.button(
        "💾 Save changes" if editing else "💾 Add invoice",
        type="primary",
        on_click=on_submit_form,
        args=(invoice_flow,),
    )
    if editing:
        col2.button("Cancel edit", on_click=reset_form)

    return duplicate.id if duplicate is not None else None


def render_filters():
    st.subheader("🔍 Invoices")
    col1, col2, col3 = st.columns([2, 1, 1])
    col1.text_input("Search supplier, number or description", key="filter_search")
    col2.date_input("From", key="filter_from", value=None)
    col3.date_input("To", key="filter_to", value=None)

    col1, col2, col3, col4 = st.columns(4)
    col1.selectbox("Category", options=[ALL] + [c.value for c in InvoiceCategory], key="filter_category")
    col2.selectbox("Status", options=[ALL] + [s.value for s in InvoiceStatus], key="filter_status")
    col3.selectbox(
        "Sort by",
        options=[s.value for s in SortOption],
        format_func=lambda value: SortOption(value).label,
        key="filter_sort",
    )
    col4.button("Clear filters", on_click=reset_filters)


def render_invoice_list(
    invoice_flow: InvoiceFlow,
    invoices: list[Invoice],
    duplicate_id: Optional[str] = None,
):
    if not invoices:
        st.info("📋 No invoices match. Add one above or import a file.")
        return

    header = st.columns([1.2, 2.5, 1.5, 1.5, 1.2, 1.3, 0.5, 0.5, 0.5])
    for column, title in zip(header, ["Date", "Supplier", "Number", "Category", "Status", "Amount"]):
        column.markdown(f"**{title}**")

    for invoice in invoices:
        row = st.columns([1.2, 2.5, 1.5, 1.5, 1.2, 1.3, 0.5, 0.5, 0.5])
        if invoice.id == duplicate_id:
            row[0].markdown(f"⚠️ **{invoice.date.isoformat()}**")
        else:
            row[0].write(invoice.date.isoformat())
        row[1].write(invoice.supplier)
        row[2].write(invoice.invoice_number)
        row[3].write(invoice.category.value)
        row[4].write(f"{STATUS_ICONS[invoice.status]} {invoice.status.value}")
        row[5].write(money(invoice.amount))
        row[6].button("✏️", key=f"edit_{invoice.id}", on_click=on_start_edit, args=(invoice,))
        if row[7].button("🗑️", key=f"delete_{invoice.id}"):
            confirm_delete_invoice(invoice, invoice_flow)
        if row[8].button("📈", key=f"stats_{invoice.id}"):
            show_supplier_stats(invoice.supplier)


def render_transfer(transfer_flow: TransferFlow, displayed: list[Invoice]):
    st.subheader("📁 Import / Export")
    left, right = st.columns(2)

    with left:
        uploaded = st.file_uploader(
            "Import CSV or PDF",
            type=["csv", "pdf"],
            key=f"uploader_{st.session_state['uploader_nonce']}",
        )
        if uploaded is not None and st.button("📥 Import"):
            with st.spinner("Importing..."):
                try:
                    summary, invoices = run_async(transfer_flow.import_file(
                        st.session_state["workspace_id"],
                        uploaded.name,
                        uploaded.getvalue(),
                        st.session_state["invoices"],
                        mime_type=uploaded.type,
                    ))
                except (UnsupportedFileError, CsvImportError, ExtractionError) as e:
                    st.error(str(e))
                    return
                except StorageError as e:
                    st.error(f"Import failed, nothing was saved: {e}")
                    return

            st.session_state["invoices"] = invoices
            st.session_state["uploader_nonce"] += 1
            flash(
                "success" if summary.added else "info",
                f"Imported {summary.added} invoice(s), skipped {summary.skipped} duplicate(s)",
            )
            st.rerun()

    with right:
        workspace_name = current_workspace_name()
        csv_file = transfer_flow.export_csv(workspace_name, displayed)
        st.download_button(
            "⬇️ Download CSV",
            data=csv_file.data,
            file_name=csv_file.filename,
            mime=csv_file.mime_type,
            disabled=not displayed,
        )
        if not displayed:
            return

        # The PDF is rendered on request and kept until the view changes
        view_key = (
            st.session_state["workspace_id"],
            tuple(invoice.model_dump_json() for invoice in displayed),
        )
        cached = st.session_state["pdf_export"]
        if cached is not None and cached[0] != view_key:
            cached = st.session_state["pdf_export"] = None

        if cached is None:
            if st.button("📄 Prepare PDF"):
                with st.spinner("Rendering PDF..."):
                    pdf_file = transfer_flow.export_pdf(workspace_name, displayed)
                st.session_state["pdf_export"] = (view_key, pdf_file)
                st.rerun()
        else:
            pdf_file = cached[1]
            st.download_button(
                "⬇️ Download PDF",
                data=pdf_file.data,
                file_name=pdf_file.filename,
                mime=pdf_file.mime_type,
            )


def main():
    """Main application entry point."""
    try:
        app_settings = get_settings().app
    except Exception as e:
        st.error(f"Application is not configured (APP_PASSWORD is required): {e}")
        st.stop()

    gate = SessionGate(
        st.session_state,
        app_settings.app_password,
        app_settings.app_admin_password,
    )
    if not gate.is_authenticated:
        render_login(gate)
        return

    workspace_flow, invoice_flow, transfer_flow, _ = get_components()

    init_state()
    ensure_workspaces(workspace_flow)
    ensure_invoices(invoice_flow)

    view = build_view(st.session_state["invoices"], current_filters())

    render_sidebar(workspace_flow, gate, view)

    st.title(f"🧾 {current_workspace_name()}")
    show_flash()

    duplicate_id = render_form(invoice_flow)
    st.markdown("---")
    render_filters()
    render_invoice_list(invoice_flow, view.invoices, duplicate_id)
    st.markdown("---")
    render_transfer(transfer_flow, view.invoices)


if __name__ == "__main__":
    main()
