"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chip8vm.constants import ADDRESS_MASK, STACK_SIZE
from chip8vm.state import StackState


def is_full(stack: StackState) -> jnp.ndarray:
    return stack.pointer >= STACK_SIZE


def is_empty(stack: StackState) -> jnp.ndarray:
    return stack.pointer == 0


def push(stack: StackState, address: jnp.ndarray) -> StackState:
    """Push address onto stack.

    Pushing onto a full stack drops the write; callers check ``is_full`` first.
    """
    masked_address = jnp.astype(address & ADDRESS_MASK, jnp.uint16)
    new_data = stack.data.at[stack.pointer].set(masked_address, mode="drop")
    return stack.replace(data=new_data, pointer=jnp.astype(stack.pointer + 1, jnp.uint8))


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray]:
    """Pop address from stack.

    Popping an empty stack returns address 0 and leaves the stack unchanged.
    """
    empty = is_empty(stack)
    new_pointer = jnp.where(empty, stack.pointer, stack.pointer - 1)
    popped_address = jnp.where(empty, jnp.zeros((), jnp.uint16), stack.data[new_pointer])
    new_data = jnp.where(empty, stack.data, stack.data.at[new_pointer].set(0))
    return stack.replace(data=new_data, pointer=jnp.astype(new_pointer, jnp.uint8)), popped_address
