"""Test cases for part hierarchy resolution."""
from django.test import TestCase

from booking.exceptions import BookingValidationError, NotFoundError
from booking.hierarchy import (
    blocking_set, blocking_set_for, load_part_arena, resolve_blocking_parts,
    validate_part_selection, would_create_cycle
)
from booking.tests.factories import ResourceFactory, ResourcePartFactory


class TestBlockingSet(TestCase):
    """Blocking sets over an in-memory arena."""

    # 1 -> (2, 3), 2 -> 4, 5 standalone
    arena = {1: None, 2: 1, 3: 1, 4: 2, 5: None}

    def test_parent_blocks_itself_and_children(self):
        self.assertEqual(blocking_set(1, self.arena), {1, 2, 3})

    def test_child_blocks_itself_parent_and_own_children(self):
        self.assertEqual(blocking_set(2, self.arena), {1, 2, 4})

    def test_only_one_level_is_followed(self):
        self.assertNotIn(4, blocking_set(1, self.arena))
        self.assertNotIn(1, blocking_set(4, self.arena))

    def test_standalone_part(self):
        self.assertEqual(blocking_set(5, self.arena), {5})

    def test_siblings_do_not_block_each_other(self):
        self.assertNotIn(3, blocking_set(2, self.arena))

    def test_union_for_several_parts(self):
        self.assertEqual(blocking_set_for([3, 5], self.arena), {1, 3, 5})


class TestResolveBlockingParts(TestCase):
    """Blocking sets resolved from the database."""

    def setUp(self):
        self.resource = ResourceFactory()
        self.hall = ResourcePartFactory(resource=self.resource, name='Hall')
        self.half_a = ResourcePartFactory(resource=self.resource, name='Half A', parent=self.hall)
        self.half_b = ResourcePartFactory(resource=self.resource, name='Half B', parent=self.hall)

    def test_load_part_arena(self):
        self.assertEqual(load_part_arena(self.resource), {
            self.hall.pk: None,
            self.half_a.pk: self.hall.pk,
            self.half_b.pk: self.hall.pk,
        })

    def test_whole_resource_request_is_empty(self):
        self.assertEqual(resolve_blocking_parts(self.resource, []), set())
        self.assertEqual(resolve_blocking_parts(self.resource, None), set())

    def test_parent_request(self):
        self.assertEqual(
            resolve_blocking_parts(self.resource, [self.hall.pk]),
            {self.hall.pk, self.half_a.pk, self.half_b.pk}
        )

    def test_child_request(self):
        self.assertEqual(
            resolve_blocking_parts(self.resource, [self.half_a.pk]),
            {self.hall.pk, self.half_a.pk}
        )

    def test_part_of_other_resource_not_found(self):
        other = ResourcePartFactory()
        with self.assertRaises(NotFoundError):
            resolve_blocking_parts(self.resource, [other.pk])

    def test_selection_with_parent_and_child_rejected(self):
        with self.assertRaises(BookingValidationError):
            validate_part_selection(self.resource, [self.hall.pk, self.half_a.pk])

    def test_selection_of_siblings_allowed(self):
        validate_part_selection(self.resource, [self.half_a.pk, self.half_b.pk])


class TestCycleDetection(TestCase):

    def setUp(self):
        self.resource = ResourceFactory()
        self.root = ResourcePartFactory(resource=self.resource)
        self.child = ResourcePartFactory(resource=self.resource, parent=self.root)

    def test_no_parent(self):
        self.assertFalse(would_create_cycle(self.root, None))

    def test_self_parent(self):
        self.assertTrue(would_create_cycle(self.root, self.root))

    def test_descendant_as_parent(self):
        self.assertTrue(would_create_cycle(self.root, self.child))

    def test_valid_parent(self):
        other = ResourcePartFactory(resource=self.resource)
        self.assertFalse(would_create_cycle(other, self.root))
