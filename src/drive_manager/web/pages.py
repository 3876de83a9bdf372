"""
NiceGUI pages for browsing the signed-in user's Drive.
"""

from typing import Any, Callable, List, TypeVar

from nicegui import events, run, ui

from ..core.logging import get_logger
from ..core.exceptions import AuthRejectedError, DriveManagerError, UpstreamFailureError
from ..drive_integration import DriveFile, DriveService, GoogleDriveClient
from ..settings import get_settings
from .session import get_access_token


logger = get_logger(__name__)

T = TypeVar("T")


class MyFilesPage:
    """File table with upload, download and delete actions."""

    def __init__(self, access_token: str) -> None:
        self.access_token = access_token
        self.settings = get_settings()
        self.files: List[DriveFile] = []

    def _call(self, action: Callable[[GoogleDriveClient], T]) -> T:
        # One client per action, like one per HTTP request
        with GoogleDriveClient(self.access_token, self.settings.google_drive) as client:
            return action(client)

    async def _run(self, action: Callable[[GoogleDriveClient], T], failure: str) -> Any:
        """Run a Drive action off the event loop; notify and return None on failure."""
        try:
            return await run.io_bound(self._call, action)
        except AuthRejectedError:
            ui.notify("Your session has expired. Please sign in again.", type="warning")
            ui.navigate.to("/auth/logout")
        except DriveManagerError as e:
            logger.error(f"{failure}: {e.message}")
            ui.notify(f"{failure}: {e.message}", type="negative")
        return None

    async def confirm(self, message: str, action_label: str = "Delete") -> bool:
        with ui.dialog() as dialog, ui.card():
            ui.label(message)
            with ui.row().classes("w-full justify-end"):
                ui.button("Cancel", on_click=lambda: dialog.submit(False)).props("flat")
                ui.button(action_label, on_click=lambda: dialog.submit(True)).props("color=negative")
        result = await dialog
        dialog.delete()
        return bool(result)

    def build(self) -> None:
        with ui.column().classes("p-6 w-full"):
            with ui.row().classes("w-full justify-end gap-4 pt-3"):
                ui.button("Add File", icon="upload", on_click=self.open_upload_dialog)
                ui.button("Delete All Files", icon="delete_forever", on_click=self.delete_all).props("color=negative")
                ui.button("Exit", icon="logout", on_click=lambda: ui.navigate.to("/auth/logout")).props("outline")

            ui.label("Your Google Drive Files").classes("text-2xl font-semibold mb-4")
            self.file_list()

        with ui.dialog() as self.upload_dialog, ui.card().classes("p-6 w-[30rem]"):
            ui.label("Upload File").classes("text-xl font-semibold mb-4")
            self.uploader = ui.upload(
                label="Choose a file",
                auto_upload=True,
                on_upload=self.handle_upload
            ).classes("w-full")
            self.folder_input = ui.input(
                "Target Folder Name (optional)",
                placeholder="Enter Folder Name"
            ).classes("w-full mt-4")
            with ui.row().classes("w-full justify-end mt-4"):
                ui.button("Cancel", on_click=self.upload_dialog.close).props("flat")

    @ui.refreshable
    def file_list(self) -> None:
        if not self.files:
            ui.label("No files found.")
            return

        with ui.grid(columns="minmax(0, 3fr) minmax(0, 1fr) minmax(0, 1fr) auto").classes("w-full items-center gap-x-4"):
            for header in ("Name", "Type", "Modified Time", "Action"):
                ui.label(header).classes("font-semibold")

            for drive_file in self.files:
                ui.label(drive_file.name or drive_file.id).classes("truncate")
                ui.label(drive_file.type_label).classes("truncate")
                ui.label(drive_file.modified_time or "")
                with ui.row().classes("gap-1"):
                    if not drive_file.is_folder:
                        ui.button(
                            icon="download",
                            on_click=lambda f=drive_file: self.download(f)
                        ).props("flat dense").tooltip("Download File")
                    ui.button(
                        icon="delete",
                        on_click=lambda f=drive_file: self.delete(f)
                    ).props("flat dense").tooltip("Delete File")

    async def load_files(self) -> None:
        files = await self._run(lambda client: client.list_all_files(), "Error fetching files")
        if files is not None:
            self.files = files
            self.file_list.refresh()

    def open_upload_dialog(self) -> None:
        self.uploader.reset()
        self.folder_input.value = ""
        self.upload_dialog.open()

    async def handle_upload(self, e: events.UploadEventArguments) -> None:
        content = e.content.read()
        folder_name = self.folder_input.value

        uploaded = await self._run(
            lambda client: DriveService(client).upload(content, e.name, e.type, folder_name),
            "Error uploading file"
        )
        if uploaded is None:
            return

        self.files.insert(0, uploaded)
        self.file_list.refresh()
        self.upload_dialog.close()
        ui.notify("File uploaded successfully.", type="positive")

    async def download(self, drive_file: DriveFile) -> None:
        result = await self._run(
            lambda client: client.download_file(drive_file.id),
            "Error downloading file"
        )
        if result is not None:
            ui.download(result.content, filename=result.file_name, media_type=result.content_type)

    async def delete(self, drive_file: DriveFile) -> None:
        if not await self.confirm("Are you sure you want to delete this file?"):
            return

        done = await self._run(
            lambda client: client.delete_file(drive_file.id) or True,
            "Error deleting file"
        )
        if done:
            self.files = [f for f in self.files if f.id != drive_file.id]
            self.file_list.refresh()

    async def delete_all(self) -> None:
        if not await self.confirm("Are you sure you want to delete all files?", "Delete All"):
            return

        done = await self._run(
            lambda client: client.delete_all_files() or True,
            "Error deleting all files"
        )
        if done:
            self.files = []
            self.file_list.refresh()
            ui.notify("All files have been deleted.", type="positive")
        else:
            # Some files may already be in the trash
            await self.load_files()


@ui.page("/")
async def my_files() -> None:
    ui.page_title(get_settings().web.title)

    try:
        access_token = await get_access_token()
    except UpstreamFailureError as e:
        logger.error(f"Could not refresh session credentials: {e.message}")
        with ui.column().classes("p-6"):
            ui.label("Could not reach Google. Please try again later.").classes("text-xl font-semibold mb-4")
            ui.button("Retry", icon="refresh", on_click=lambda: ui.navigate.to("/"))
        return

    if not access_token:
        with ui.column().classes("p-6"):
            ui.label("You are not signed in").classes("text-xl font-semibold mb-4")
            ui.button("Sign in with Google", icon="login", on_click=lambda: ui.navigate.to("/auth/login"))
        return

    page = MyFilesPage(access_token)
    page.build()
    await ui.context.client.connected()
    await page.load_files()
