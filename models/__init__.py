# Schema engine
from models.data_table import DataTable
from models.table_field import TableField
from models.field_section import FieldSection

# Navigation grouping
from models.interface_group import InterfaceGroup
from models.interface_page import InterfacePage
