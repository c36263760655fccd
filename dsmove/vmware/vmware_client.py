# dsmove/vmware/vmware_client.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import socket
import ssl
from typing import Any, Dict, List, Optional

from pyVim.connect import Disconnect, SmartConnect
from pyVmomi import vim

from ..core.exceptions import VMwareError


class VMwareClient:
    """
    Minimal vSphere/vCenter session:
      - pyvmomi control-plane (inventory lookups by name, task manager, Storage DRS)
      - explicit object, no module-level connection state
    """

    def __init__(
        self,
        logger: logging.Logger,
        host: str,
        user: str,
        password: str,
        *,
        port: int = 443,
        insecure: bool = False,
        timeout: Optional[float] = None,
    ):
        self.logger = logger
        self.host = host
        self.user = user
        self.password = password
        self.port = int(port)
        self.insecure = bool(insecure)
        self.timeout = timeout
        self.si = None

        # name -> managed object, per vim type
        self._obj_cache: Dict[str, Dict[str, Any]] = {}

    # ---------------------------
    # Connect / Disconnect
    # ---------------------------

    def _ssl_context(self) -> ssl.SSLContext:
        if self.insecure:
            ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
            return ctx
        return ssl.create_default_context()

    def connect(self) -> None:
        ctx = self._ssl_context()
        try:
            if self.timeout is not None:
                old_timeout = socket.getdefaulttimeout()
                socket.setdefaulttimeout(self.timeout)
                try:
                    self.si = SmartConnect(
                        host=self.host, user=self.user, pwd=self.password, port=self.port, sslContext=ctx
                    )
                finally:
                    socket.setdefaulttimeout(old_timeout)
            else:
                self.si = SmartConnect(
                    host=self.host, user=self.user, pwd=self.password, port=self.port, sslContext=ctx
                )
            self.logger.info("Connected to vSphere: %s:%s", self.host, self.port)
        except Exception as e:
            self.si = None
            raise VMwareError(msg=f"Failed to connect to vSphere: {e}", cause=e)

    def disconnect(self) -> None:
        try:
            if self.si is not None:
                Disconnect(self.si)
        except Exception as e:
            self.logger.error("Error during disconnect: %s", e)
        finally:
            self.si = None
            self._obj_cache = {}

    # ---------------------------
    # Inventory helpers
    # ---------------------------

    def _content(self) -> Any:
        if not self.si:
            raise VMwareError(msg="Not connected")
        try:
            return self.si.RetrieveContent()
        except Exception as e:
            raise VMwareError(msg=f"Failed to retrieve content: {e}", cause=e)

    def _index(self, vimtype: Any) -> Dict[str, Any]:
        key = getattr(vimtype, "__name__", str(vimtype))
        cached = self._obj_cache.get(key)
        if cached is not None:
            return cached
        content = self._content()
        view = content.viewManager.CreateContainerView(content.rootFolder, [vimtype], True)
        try:
            by_name = {str(obj.name): obj for obj in view.view}
        finally:
            try:
                view.Destroy()
            except Exception:
                pass
        self._obj_cache[key] = by_name
        return by_name

    def find_by_name(self, vimtype: Any, name: str) -> Any:
        return self._index(vimtype).get((name or "").strip())

    def get_vm_by_name(self, name: str) -> Any:
        return self.find_by_name(vim.VirtualMachine, name)

    def get_datastore_by_name(self, name: str) -> Any:
        return self.find_by_name(vim.Datastore, name)

    def get_storage_pod_by_name(self, name: str) -> Any:
        return self.find_by_name(vim.StoragePod, name)

    # ---------------------------
    # Tasks / Storage DRS
    # ---------------------------

    def recent_tasks(self) -> List[Any]:
        content = self._content()
        return list(getattr(content.taskManager, "recentTask", None) or [])

    def storage_resource_manager(self) -> Any:
        return self._content().storageResourceManager
