import unittest
from types import SimpleNamespace
from unittest import mock

from fakes import quiet_logger
from pyVmomi import vim

from dsmove.core.exceptions import VMwareError
from dsmove.vmware.vmware_client import VMwareClient


def fake_service_instance(objs, tasks=()):
    view = mock.Mock()
    view.view = objs
    content = mock.Mock()
    content.viewManager.CreateContainerView.return_value = view
    content.taskManager.recentTask = list(tasks)
    si = mock.Mock()
    si.RetrieveContent.return_value = content
    return si, content, view


class TestVMwareClient(unittest.TestCase):
    def setUp(self):
        self.client = VMwareClient(quiet_logger(), "vc01", "admin", "pw", insecure=True)

    def test_not_connected(self):
        with self.assertRaises(VMwareError):
            self.client.get_vm_by_name("vmA")

    def test_lookup_by_name_is_cached_per_type(self):
        vm_a = SimpleNamespace(name="vmA")
        si, content, view = fake_service_instance([vm_a, SimpleNamespace(name="vmB")])
        self.client.si = si

        self.assertIs(self.client.get_vm_by_name(" vmA "), vm_a)
        self.assertIsNone(self.client.get_vm_by_name("ghost"))

        content.viewManager.CreateContainerView.assert_called_once_with(content.rootFolder, [vim.VirtualMachine], True)
        view.Destroy.assert_called_once()

    def test_recent_tasks(self):
        si, _content, _view = fake_service_instance([], tasks=["t1", "t2"])
        self.client.si = si
        self.assertEqual(self.client.recent_tasks(), ["t1", "t2"])

    def test_connect_failure_is_vmware_error(self):
        with mock.patch("dsmove.vmware.vmware_client.SmartConnect", side_effect=OSError("refused")):
            with self.assertRaises(VMwareError) as cm:
                self.client.connect()
        self.assertIn("refused", str(cm.exception))
        self.assertIsNone(self.client.si)

    def test_disconnect_clears_session(self):
        si, _content, _view = fake_service_instance([SimpleNamespace(name="ds1")])
        self.client.si = si
        self.client.get_datastore_by_name("ds1")
        with mock.patch("dsmove.vmware.vmware_client.Disconnect") as disc:
            self.client.disconnect()
        disc.assert_called_once_with(si)
        self.assertIsNone(self.client.si)
        self.assertEqual(self.client._obj_cache, {})


if __name__ == "__main__":
    unittest.main()
