"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a hosted document database later
2. Use in-memory storage for demo mode and testing
3. Keep flows decoupled from the storage implementation

The backend holds two collections: workspace metadata, and invoices that
carry a reference to their workspace. Invoices are always queried by
equality on that reference.

Every operation is a remote call with no local durability. Nothing here
retries or queues writes; failures are raised as StorageError.
"""

from abc import ABC, abstractmethod

from invoice_studio.models.invoice import Invoice, InvoiceDraft, Workspace


DEFAULT_WORKSPACE_NAME = "Main Database"


class InvoiceStoreInterface(ABC):
    """
    Abstract interface for workspace and invoice storage.

    Any storage implementation (Google Sheets, Firestore, etc.)
    must implement these methods.
    """

    # -------------------------------------------------------------------------
    # Workspaces
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_workspaces(self) -> list[Workspace]:
        """
        List all workspaces, oldest first.

        If none exist, a default workspace is created and returned, so
        the result is never empty.

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def create_workspace(self, name: str) -> Workspace:
        """
        Create a new, empty workspace.

        Args:
            name: Display name

        Returns:
            The created workspace with its store-assigned id
        """
        pass

    @abstractmethod
    async def delete_workspace(self, workspace_id: str) -> None:
        """
        Delete a workspace and every invoice that belongs to it.

        Does not check whether this is the last workspace; that rule is
        enforced by WorkspaceFlow.

        Raises:
            StorageError: If deletion fails
        """
        pass

    # -------------------------------------------------------------------------
    # Invoices
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_invoices(self, workspace_id: str) -> list[Invoice]:
        """
        List the invoices of one workspace, newest date first.

        Args:
            workspace_id: Workspace to read

        Returns:
            Matching invoices (empty list for an unknown workspace)
        """
        pass

    @abstractmethod
    async def add_invoice(self, workspace_id: str, draft: InvoiceDraft) -> Invoice:
        """
        Store a new invoice.

        Returns:
            The stored invoice with its id and created_at filled in
        """
        pass

    @abstractmethod
    async def batch_add_invoices(
        self,
        workspace_id: str,
        drafts: list[InvoiceDraft],
    ) -> list[Invoice]:
        """
        Store several invoices in one batched write.

        Either all drafts are written or the call raises StorageError.
        """
        pass

    @abstractmethod
    async def update_invoice(self, invoice: Invoice) -> Invoice:
        """
        Overwrite an existing invoice by id.

        Raises:
            NotFoundError: If no invoice has this id
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_invoice(self, invoice_id: str) -> bool:
        """
        Delete one invoice by id.

        Returns:
            True if an invoice was deleted, False if none had this id
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
